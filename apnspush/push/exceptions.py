"""
Exceptions raised while preparing provider credentials.

The dispatcher converts these into ``DeliveryResult`` values with
``DeliveryStatus.CREDENTIAL_ERROR``; callers of the signer see them raised.
"""

from typing import Optional

from apnspush.push.models import CredentialErrorKind


class APNSError(Exception):
    """Base class for all apnspush errors."""


class CredentialError(APNSError):
    """The provider token could not be produced."""

    kind: CredentialErrorKind = CredentialErrorKind.SIGNING

    def __init__(self, message: str, key_file: Optional[str] = None):
        super().__init__(message)
        self.key_file = key_file


class KeyLoadError(CredentialError):
    """Key file missing, unreadable, or not PEM."""

    kind = CredentialErrorKind.KEY_LOAD


class KeyParseError(CredentialError):
    """PEM present but not an EC P-256 private key."""

    kind = CredentialErrorKind.KEY_PARSE


class SigningError(CredentialError):
    """The ES256 signing operation failed."""

    kind = CredentialErrorKind.SIGNING
