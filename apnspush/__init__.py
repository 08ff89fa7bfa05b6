"""Push notifications to Apple devices over the APNs HTTP/2 provider API."""

from apnspush.push import (
    APNSAlert,
    APNSPayload,
    APNSProvider,
    Aps,
    DeliveryOptions,
    DeliveryResult,
    DeliveryStatus,
    ProviderCredentials,
    send_push_notification,
    sign_provider_token,
)

__version__ = "0.1.0"

__all__ = [
    "APNSAlert",
    "APNSPayload",
    "APNSProvider",
    "Aps",
    "DeliveryOptions",
    "DeliveryResult",
    "DeliveryStatus",
    "ProviderCredentials",
    "send_push_notification",
    "sign_provider_token",
]
