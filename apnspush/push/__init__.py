"""
APNs HTTP/2 provider API client.

- Token signer: ES256 provider tokens from an Apple .p8 key
- Request dispatcher: one HTTP/2 request per notification, typed results
"""

from apnspush.push.apns_provider import (
    APNSProvider,
    build_device_url,
    build_headers,
    dispatch_notification,
    parse_response,
    send_push_notification,
)
from apnspush.push.exceptions import (
    APNSError,
    CredentialError,
    KeyLoadError,
    KeyParseError,
    SigningError,
)
from apnspush.push.models import (
    APNSAlert,
    APNSPayload,
    Aps,
    CredentialErrorKind,
    DeliveryOptions,
    DeliveryResult,
    DeliveryStatus,
    ProviderCredentials,
    TransportErrorKind,
)
from apnspush.push.token_signer import (
    build_provider_token,
    load_signing_key,
    sign_provider_token,
)

__all__ = [
    # Dispatcher
    "APNSProvider",
    "send_push_notification",
    "dispatch_notification",
    "build_device_url",
    "build_headers",
    "parse_response",
    # Token signer
    "sign_provider_token",
    "build_provider_token",
    "load_signing_key",
    # Payload
    "APNSPayload",
    "APNSAlert",
    "Aps",
    "DeliveryOptions",
    "ProviderCredentials",
    # Results and errors
    "DeliveryResult",
    "DeliveryStatus",
    "TransportErrorKind",
    "CredentialErrorKind",
    "APNSError",
    "CredentialError",
    "KeyLoadError",
    "KeyParseError",
    "SigningError",
]
