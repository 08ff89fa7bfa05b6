"""Pytest fixtures shared by the test suite

Provides throwaway P-256 signing keys written as .p8 files and sample
payloads.
"""
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apnspush.push.models import APNSPayload, Aps


def _write_pem_key(path, private_key):
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    path.write_bytes(pem)
    return str(path)


@pytest.fixture
def ec_private_key():
    """Fresh P-256 private key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def test_key_file(tmp_path, ec_private_key):
    """Create a temporary .p8 key file for testing."""
    return _write_pem_key(tmp_path / "AuthKey_TEST.p8", ec_private_key)


@pytest.fixture
def sample_payload():
    """Payload matching the documented example notification."""
    return APNSPayload(
        aps=Aps(
            alert="Hello",
            content_available=1,
            badge=1,
            sound="default",
        ),
        custom_data={"custom_key": "custom_value"},
    )


@pytest.fixture
def device_token():
    return "a1b2c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f90"


@pytest.fixture
def write_key(tmp_path):
    """Factory writing any private key as an unencrypted PKCS#8 .p8 file."""
    def _write(private_key, name="AuthKey.p8"):
        return _write_pem_key(tmp_path / name, private_key)
    return _write
