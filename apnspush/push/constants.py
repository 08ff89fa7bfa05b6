"""
Constants for the APNs provider API.

Hosts, paths, JWT parameters and Apple's documented reason strings.
"""

# APNS Hosts
APNS_PRODUCTION_HOST = "api.push.apple.com"
APNS_SANDBOX_HOST = "api.sandbox.push.apple.com"

# APNS API path
APNS_DEVICE_PATH = "/3/device/{device_token}"

# JWT configuration
JWT_ALGORITHM = "ES256"

# Request
APNS_CONTENT_TYPE = "application/json"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

# Optional request header values
APNS_PUSH_TYPES = {
    "alert",
    "background",
    "location",
    "voip",
    "complication",
    "fileprovider",
    "mdm",
    "liveactivity",
    "pushtotalk",
}
APNS_PRIORITIES = {1, 5, 10}
APNS_COLLAPSE_ID_MAX_BYTES = 64

# Interruption levels accepted in the aps dictionary
APNS_INTERRUPTION_LEVELS = {"passive", "active", "time-sensitive", "critical"}

# APNS Error Codes (from response body "reason")
APNS_ERROR_CODES = {
    # Client errors
    "BadCollapseId": "The collapse identifier exceeds the maximum allowed size",
    "BadDeviceToken": "The specified device token is invalid",
    "BadExpirationDate": "The apns-expiration value is invalid",
    "BadMessageId": "The apns-id value is invalid",
    "BadPriority": "The apns-priority value is invalid",
    "BadTopic": "The apns-topic value is invalid",
    "DeviceTokenNotForTopic": "The device token doesn't match the specified topic",
    "DuplicateHeaders": "One or more headers are repeated",
    "IdleTimeout": "Idle timeout",
    "InvalidPushType": "The apns-push-type value is invalid",
    "MissingDeviceToken": "The device token is not specified in the request path",
    "MissingTopic": "The apns-topic header is missing from the request",
    "PayloadEmpty": "The message payload is empty",
    "PayloadTooLarge": "The message payload is too large",
    "TopicDisallowed": "Pushing to this topic is not allowed",

    # Token errors
    "BadCertificate": "The certificate is invalid",
    "BadCertificateEnvironment": "The client certificate is for the wrong environment",
    "ExpiredProviderToken": "The provider token is stale and a new token should be generated",
    "Forbidden": "The specified action is not allowed",
    "InvalidProviderToken": "The provider token is not valid or the token signature cannot be verified",
    "MissingProviderToken": "No provider certificate was used to connect to APNs",

    # Request errors
    "BadPath": "The request contained an invalid :path value",
    "MethodNotAllowed": "The specified :method value isn't POST",
    "ExpiredToken": "The device token has expired",

    # Device token errors
    "Unregistered": "The device token is no longer active for the topic",

    # Server errors
    "TooManyProviderTokenUpdates": "The provider token has been updated too often",
    "TooManyRequests": "Too many requests were made consecutively to the same device token",
    "InternalServerError": "An internal server error occurred",
    "ServiceUnavailable": "The service is unavailable",
    "Shutdown": "The server is shutting down",
}

# HTTP status codes a caller may reasonably retry; nothing here retries itself
APNS_RETRYABLE_STATUS_CODES = {429, 500, 503}
APNS_TOKEN_INVALID_STATUS_CODES = {410}  # Unregistered
APNS_AUTH_ERROR_STATUS_CODES = {403}
