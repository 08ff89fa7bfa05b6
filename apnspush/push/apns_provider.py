"""
APNS (Apple Push Notification Service) Provider.

Sends one notification per call over HTTP/2 with token-based authentication.

Features:
- Fresh ES256 provider token per call (JWT with .p8 key)
- One HTTP/2 connection per call, closed when the call returns
- Sandbox or production endpoint selection
- Every outcome returned as a DeliveryResult: success, Apple rejection,
  transport failure, or credential failure

Nothing here retries. DeliveryResult.is_retryable tells callers which
outcomes are worth retrying under their own policy.
"""

import json
import logging
import ssl
import time
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple, Union
from urllib.parse import quote

import httpx

from apnspush.core.config import Settings, get_settings
from apnspush.core.logging_config import mask_device_token
from apnspush.push.constants import (
    APNS_AUTH_ERROR_STATUS_CODES,
    APNS_CONTENT_TYPE,
    APNS_DEVICE_PATH,
    APNS_PRODUCTION_HOST,
    APNS_SANDBOX_HOST,
    APNS_TOKEN_INVALID_STATUS_CODES,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
)
from apnspush.push.exceptions import CredentialError
from apnspush.push.models import (
    APNSPayload,
    DeliveryOptions,
    DeliveryResult,
    DeliveryStatus,
    ProviderCredentials,
    TransportErrorKind,
)
from apnspush.push.token_signer import sign_provider_token

logger = logging.getLogger(__name__)

TimeoutTypes = Union[float, httpx.Timeout, None]


def apns_host(production: bool) -> str:
    """Return the APNs host for the selected environment."""
    return APNS_PRODUCTION_HOST if production else APNS_SANDBOX_HOST


def build_device_url(device_token: str, production: bool) -> str:
    """Full request URL for a device token."""
    path = APNS_DEVICE_PATH.format(device_token=quote(device_token, safe=""))
    return f"https://{apns_host(production)}{path}"


def build_headers(
    provider_token: str,
    topic: str,
    options: Optional[DeliveryOptions] = None,
) -> Dict[str, str]:
    """Build request headers for APNS."""
    headers = {
        "authorization": f"bearer {provider_token}",
        "apns-topic": topic,
        "content-type": APNS_CONTENT_TYPE,
    }
    if options is not None:
        headers.update(options.to_headers())
    return headers


def _parse_error_body(content: bytes) -> Tuple[Optional[str], Optional[datetime]]:
    """Extract ``reason`` and the 410 ``timestamp`` from an error body."""
    if not content:
        return None, None
    try:
        body = json.loads(content)
    except ValueError:
        return None, None
    if not isinstance(body, dict):
        return None, None

    reason = body.get("reason")
    if not isinstance(reason, str):
        reason = None

    # Milliseconds since epoch at which the token stopped being valid
    unregistered_at = None
    timestamp = body.get("timestamp")
    if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        unregistered_at = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)

    return reason, unregistered_at


def parse_response(device_token: str, response: httpx.Response) -> DeliveryResult:
    """
    Map an APNs HTTP response to a DeliveryResult.

    200 is success; any other status is a rejection carrying Apple's
    reason string when the body provides one.
    """
    status_code = response.status_code
    apns_id = response.headers.get("apns-id")

    if status_code == 200:
        return DeliveryResult(
            device_token=device_token,
            status=DeliveryStatus.SUCCESS,
            status_code=status_code,
            apns_id=apns_id,
        )

    reason, unregistered_at = _parse_error_body(response.content)
    return DeliveryResult(
        device_token=device_token,
        status=DeliveryStatus.REJECTED,
        status_code=status_code,
        reason=reason,
        apns_id=apns_id,
        unregistered_at=unregistered_at if status_code in APNS_TOKEN_INVALID_STATUS_CODES else None,
        error=f"APNS error: {reason or status_code}",
    )


def _is_tls_failure(exc: BaseException) -> bool:
    """Walk the exception chain looking for an ssl error."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def classify_transport_error(exc: httpx.HTTPError) -> TransportErrorKind:
    """Classify an httpx failure that happened before a response arrived."""
    if isinstance(exc, httpx.TimeoutException):
        return TransportErrorKind.TIMEOUT
    if _is_tls_failure(exc):
        return TransportErrorKind.TLS
    if isinstance(exc, (httpx.ProtocolError, httpx.DecodingError)):
        return TransportErrorKind.PROTOCOL
    return TransportErrorKind.CONNECTION


def _require_target(device_token: str, topic: str) -> None:
    if not device_token:
        raise ValueError("device_token must not be empty")
    if not topic:
        raise ValueError("topic must not be empty")


def _default_timeout() -> httpx.Timeout:
    return httpx.Timeout(DEFAULT_TIMEOUT_SECONDS, connect=DEFAULT_CONNECT_TIMEOUT_SECONDS)


async def dispatch_notification(
    provider_token: str,
    device_token: str,
    topic: str,
    payload: APNSPayload,
    production: bool = False,
    options: Optional[DeliveryOptions] = None,
    timeout: TimeoutTypes = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DeliveryResult:
    """
    Send exactly one notification request with an existing provider token.

    A new HTTP/2 client is opened for the request and closed before
    returning. Cancellation propagates to the caller.

    Args:
        provider_token: Signed JWT for the authorization header
        device_token: APNS device token (hex string)
        topic: App bundle identifier (apns-topic)
        payload: Notification payload
        production: Use api.push.apple.com instead of the sandbox host
        options: Optional apns-* request headers
        timeout: Seconds or httpx.Timeout; defaults to 30s (10s connect)
        transport: Alternative httpx transport

    Returns:
        DeliveryResult with success, rejection or transport failure
    """
    _require_target(device_token, topic)

    url = build_device_url(device_token, production)
    headers = build_headers(provider_token, topic, options)
    body = payload.to_json()
    masked_token = mask_device_token(device_token)

    client_kwargs = {
        "http2": True,
        "timeout": timeout if timeout is not None else _default_timeout(),
    }
    if transport is not None:
        # Environment proxies would otherwise be mounted ahead of the transport
        client_kwargs["transport"] = transport
        client_kwargs["trust_env"] = False

    start_time = time.time()
    try:
        async with httpx.AsyncClient(**client_kwargs) as client:
            response = await client.post(url, content=body, headers=headers)
    except httpx.HTTPError as e:
        kind = classify_transport_error(e)
        logger.warning(
            f"APNS request failed before a response ({kind.value})",
            extra={
                "device_token": masked_token,
                "host": apns_host(production),
                "error": str(e),
            }
        )
        return DeliveryResult(
            device_token=device_token,
            status=DeliveryStatus.TRANSPORT_ERROR,
            transport_error=kind,
            error=f"{type(e).__name__}: {e}",
        )

    result = parse_response(device_token, response)
    duration_ms = int((time.time() - start_time) * 1000)

    if result.success:
        logger.info(
            "APNS notification sent successfully",
            extra={
                "device_token": masked_token,
                "apns_id": result.apns_id,
                "http_version": response.http_version,
                "duration_ms": duration_ms,
            }
        )
    elif result.status_code in APNS_AUTH_ERROR_STATUS_CODES:
        logger.error(
            "APNS authentication error",
            extra={
                "status_code": result.status_code,
                "reason": result.reason,
                "topic": topic,
            }
        )
    else:
        logger.warning(
            "APNS notification rejected",
            extra={
                "device_token": masked_token,
                "status_code": result.status_code,
                "reason": result.reason,
                "apns_id": result.apns_id,
                "duration_ms": duration_ms,
            }
        )

    return result


async def send_push_notification(
    key_file: str,
    team_id: str,
    key_id: str,
    device_token: str,
    topic: str,
    payload: APNSPayload,
    production: bool = False,
    options: Optional[DeliveryOptions] = None,
    timeout: TimeoutTypes = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DeliveryResult:
    """
    Sign a fresh provider token and send one push notification.

    Credential problems (unreadable key, wrong key type, signing failure)
    come back as a CREDENTIAL_ERROR result without any network activity.

    Usage:
        payload = APNSPayload(aps=Aps(alert="Hello, world!", content_available=1))
        result = await send_push_notification(
            "AuthKey_XXXXXXXXXX.p8", "TEAM_ID", "KEY_ID",
            device_token, "com.example.app", payload, production=True,
        )
        if not result.success:
            print(result.status_code, result.reason)

    Raises:
        ValueError: device_token or topic is empty
    """
    _require_target(device_token, topic)

    try:
        provider_token = sign_provider_token(key_file, team_id, key_id)
    except CredentialError as e:
        logger.error(
            "APNS provider token could not be created",
            extra={
                "kind": e.kind.value,
                "key_file": key_file,
                "error": str(e),
            }
        )
        return DeliveryResult(
            device_token=device_token,
            status=DeliveryStatus.CREDENTIAL_ERROR,
            credential_error=e.kind,
            error=str(e),
        )

    return await dispatch_notification(
        provider_token,
        device_token,
        topic,
        payload,
        production=production,
        options=options,
        timeout=timeout,
        transport=transport,
    )


class APNSProvider:
    """
    APNS provider bound to one set of credentials and one app topic.

    Each send() is independent: the key is loaded, a token signed and a
    connection opened for that call alone. The provider holds no
    connection or token between calls, so instances can be shared freely
    between tasks.

    Usage:
        provider = APNSProvider(
            ProviderCredentials(
                key_file="path/to/AuthKey.p8",
                team_id="YYYYYYYYYY",
                key_id="XXXXXXXXXX",
            ),
            topic="com.example.app",
            production=False,
        )
        result = await provider.send(device_token, payload)
    """

    def __init__(
        self,
        credentials: ProviderCredentials,
        topic: str,
        production: bool = False,
        timeout: TimeoutTypes = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not topic:
            raise ValueError("topic must not be empty")

        self.credentials = credentials
        self.topic = topic
        self.production = production
        self.timeout = timeout
        self._transport = transport

        logger.info(
            "APNS provider initialized",
            extra={
                "host": self.host,
                "topic": topic,
                "production": production,
            }
        )

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "APNSProvider":
        """
        Build a provider from APNS_* settings.

        Raises:
            ValueError: A required APNS_* setting is missing
        """
        if config is None:
            config = get_settings()
        missing = [
            name
            for name in ("APNS_KEY_FILE", "APNS_TEAM_ID", "APNS_KEY_ID", "APNS_BUNDLE_ID")
            if not getattr(config, name)
        ]
        if missing:
            raise ValueError(f"APNS is not configured, missing: {', '.join(missing)}")

        return cls(
            ProviderCredentials(
                key_file=config.APNS_KEY_FILE,
                team_id=config.APNS_TEAM_ID,
                key_id=config.APNS_KEY_ID,
            ),
            topic=config.APNS_BUNDLE_ID,
            production=not config.APNS_USE_SANDBOX,
            timeout=httpx.Timeout(
                config.APNS_TIMEOUT_SECONDS,
                connect=config.APNS_CONNECT_TIMEOUT_SECONDS,
            ),
            transport=transport,
        )

    @property
    def host(self) -> str:
        return apns_host(self.production)

    async def send(
        self,
        device_token: str,
        payload: APNSPayload,
        options: Optional[DeliveryOptions] = None,
    ) -> DeliveryResult:
        """Send a push notification to a single device."""
        return await send_push_notification(
            self.credentials.key_file,
            self.credentials.team_id,
            self.credentials.key_id,
            device_token,
            self.topic,
            payload,
            production=self.production,
            options=options,
            timeout=self.timeout,
            transport=self._transport,
        )
