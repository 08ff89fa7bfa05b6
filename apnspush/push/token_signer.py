"""
Provider authentication tokens for APNs.

Builds the ES256-signed JWT Apple expects in the ``authorization`` header:

    header: {"alg": "ES256", "kid": <key id>}
    claims: {"iss": <team id>, "iat": <issued at, epoch seconds>}

A token is signed fresh for every call. The private key is loaded for the
duration of one signing operation and is not retained.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apnspush.push.constants import JWT_ALGORITHM
from apnspush.push.exceptions import KeyLoadError, KeyParseError, SigningError

logger = logging.getLogger(__name__)

_PEM_MARKER = b"-----BEGIN"


def load_signing_key(key_file: str) -> ec.EllipticCurvePrivateKey:
    """
    Load an Apple .p8 auth key.

    Args:
        key_file: Path to a PEM-encoded (PKCS#8) EC private key

    Returns:
        The P-256 private key

    Raises:
        KeyLoadError: File missing, unreadable, or without PEM armour
        KeyParseError: PEM is not an EC private key on P-256
    """
    key_path = Path(key_file)
    try:
        key_data = key_path.read_bytes()
    except OSError as e:
        raise KeyLoadError(f"APNS key file could not be read: {e}", key_file=key_file) from e

    if _PEM_MARKER not in key_data:
        raise KeyLoadError(f"APNS key file is not PEM encoded: {key_path}", key_file=key_file)

    try:
        private_key = serialization.load_pem_private_key(key_data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"APNS key could not be parsed: {e}", key_file=key_file) from e

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise KeyParseError("APNS key must be an EC private key (ES256)", key_file=key_file)

    if not isinstance(private_key.curve, ec.SECP256R1):
        raise KeyParseError(
            f"APNS key must use the P-256 curve, got {private_key.curve.name}",
            key_file=key_file,
        )

    logger.debug(f"Loaded APNS private key from {key_path}")
    return private_key


def build_provider_token(
    private_key: ec.EllipticCurvePrivateKey,
    team_id: str,
    key_id: str,
    issued_at: Optional[int] = None,
) -> str:
    """
    Sign a provider token with an already loaded key.

    Args:
        private_key: P-256 private key
        team_id: Apple Developer team identifier (``iss`` claim)
        key_id: Auth key identifier (``kid`` header)
        issued_at: ``iat`` claim; defaults to now

    Returns:
        Compact JWT string (header.claims.signature)

    Raises:
        SigningError: The signing operation failed
    """
    if issued_at is None:
        issued_at = int(time.time())

    claims = {
        "iss": team_id,
        "iat": issued_at,
    }
    # "typ": None drops the default JWT type header; Apple only wants alg and kid
    headers = {
        "kid": key_id,
        "typ": None,
    }

    try:
        token = jwt.encode(
            claims,
            private_key,
            algorithm=JWT_ALGORITHM,
            headers=headers,
        )
    except (jwt.exceptions.PyJWTError, ValueError, TypeError) as e:
        raise SigningError(f"APNS token signing failed: {e}") from e

    logger.debug(
        "Generated APNS provider token",
        extra={
            "team_id": team_id,
            "key_id": key_id,
            "issued_at": issued_at,
        }
    )
    return token


def sign_provider_token(
    key_file: str,
    team_id: str,
    key_id: str,
    issued_at: Optional[int] = None,
) -> str:
    """
    Load the key at ``key_file`` and sign a provider token with it.

    Raises:
        KeyLoadError, KeyParseError, SigningError
    """
    private_key = load_signing_key(key_file)
    try:
        return build_provider_token(private_key, team_id, key_id, issued_at=issued_at)
    except SigningError as e:
        e.key_file = key_file
        raise
