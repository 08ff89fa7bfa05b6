"""
Pydantic models and result types for APNs delivery.

Payload models serialize with Apple's exact key names (``content-available``,
``thread-id``, ...) and omit unset optional fields rather than sending null.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticSerializationError, to_jsonable_python

from apnspush.push.constants import (
    APNS_COLLAPSE_ID_MAX_BYTES,
    APNS_ERROR_CODES,
    APNS_INTERRUPTION_LEVELS,
    APNS_PRIORITIES,
    APNS_PUSH_TYPES,
    APNS_RETRYABLE_STATUS_CODES,
    APNS_TOKEN_INVALID_STATUS_CODES,
)


class DeliveryStatus(str, Enum):
    """Outcome kind of a single send."""

    SUCCESS = "success"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"
    CREDENTIAL_ERROR = "credential_error"


class TransportErrorKind(str, Enum):
    """Why a request never produced an HTTP response."""

    CONNECTION = "connection"
    TLS = "tls"
    TIMEOUT = "timeout"
    PROTOCOL = "protocol"


class CredentialErrorKind(str, Enum):
    """Why a provider token could not be produced."""

    KEY_LOAD = "key_load"
    KEY_PARSE = "key_parse"
    SIGNING = "signing"


@dataclass
class DeliveryResult:
    """Result of one push notification request.

    Exactly one of the status-specific groups is populated:

    - ``SUCCESS``: ``status_code`` (200) and ``apns_id``
    - ``REJECTED``: ``status_code``, ``reason`` (may be None), ``apns_id``,
      ``unregistered_at`` for 410 responses carrying a timestamp
    - ``TRANSPORT_ERROR``: ``transport_error`` and ``error``
    - ``CREDENTIAL_ERROR``: ``credential_error`` and ``error``
    """

    device_token: str
    status: DeliveryStatus
    status_code: Optional[int] = None
    reason: Optional[str] = None  # APNS reason from response body
    apns_id: Optional[str] = None  # APNS unique notification ID
    unregistered_at: Optional[datetime] = None
    transport_error: Optional[TransportErrorKind] = None
    credential_error: Optional[CredentialErrorKind] = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success(self) -> bool:
        return self.status == DeliveryStatus.SUCCESS

    @property
    def reason_description(self) -> Optional[str]:
        """Apple's documented meaning of ``reason``, if known."""
        if self.reason is None:
            return None
        return APNS_ERROR_CODES.get(self.reason)

    @property
    def is_token_invalid(self) -> bool:
        """True when Apple reports the device token as no longer valid."""
        if self.status != DeliveryStatus.REJECTED:
            return False
        return (
            self.status_code in APNS_TOKEN_INVALID_STATUS_CODES
            or self.reason == "BadDeviceToken"
        )

    @property
    def is_retryable(self) -> bool:
        """Advisory hint for caller-side retry policies.

        Transport failures and throttling/server errors are retryable;
        credential failures and other rejections are not.
        """
        if self.status == DeliveryStatus.TRANSPORT_ERROR:
            return True
        if self.status == DeliveryStatus.REJECTED:
            return self.status_code in APNS_RETRYABLE_STATUS_CODES
        return False


class ProviderCredentials(BaseModel):
    """Token-based provider credentials issued by Apple.

    Attributes:
        key_file: Path to the .p8 auth key file
        team_id: Apple Developer team identifier
        key_id: Identifier of the auth key
    """

    model_config = ConfigDict(frozen=True)

    key_file: str = Field(..., min_length=1, description="Path to .p8 auth key file")
    team_id: str = Field(..., min_length=1, description="Team identifier")
    key_id: str = Field(..., min_length=1, description="Key identifier")


class APNSAlert(BaseModel):
    """Dictionary form of the ``alert`` field."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    subtitle: Optional[str] = None
    body: Optional[str] = None
    title_loc_key: Optional[str] = Field(None, alias="title-loc-key")
    title_loc_args: Optional[List[str]] = Field(None, alias="title-loc-args")
    loc_key: Optional[str] = Field(None, alias="loc-key")
    loc_args: Optional[List[str]] = Field(None, alias="loc-args")
    launch_image: Optional[str] = Field(None, alias="launch-image")


class Aps(BaseModel):
    """The Apple-defined ``aps`` dictionary.

    Attributes:
        alert: Alert text, or an APNSAlert for title/subtitle/body alerts
        content_available: Background update flag, 0 or 1 (always sent)
        badge: App icon badge number
        sound: Sound filename or "default"
        category: Notification category for action buttons
        thread_id: Thread identifier for grouping
        mutable_content: Enable Notification Service Extension (0 or 1)
        interruption_level: passive, active, time-sensitive or critical
        relevance_score: Relevance score for notification summary (0.0-1.0)
        target_content_id: Window to bring to foreground
    """

    model_config = ConfigDict(populate_by_name=True)

    alert: Union[str, APNSAlert]
    content_available: int = Field(default=0, ge=0, le=1, alias="content-available")
    badge: Optional[int] = Field(None, ge=0)
    sound: Optional[str] = None
    category: Optional[str] = None
    thread_id: Optional[str] = Field(None, alias="thread-id")
    mutable_content: Optional[int] = Field(None, ge=0, le=1, alias="mutable-content")
    interruption_level: Optional[str] = Field(None, alias="interruption-level")
    relevance_score: Optional[float] = Field(None, ge=0.0, le=1.0, alias="relevance-score")
    target_content_id: Optional[str] = Field(None, alias="target-content-id")

    @field_validator("interruption_level")
    @classmethod
    def validate_interruption_level(cls, v: Optional[str]) -> Optional[str]:
        """Validate interruption level is one of the allowed values."""
        if v is not None and v not in APNS_INTERRUPTION_LEVELS:
            raise ValueError(f"Must be one of: {sorted(APNS_INTERRUPTION_LEVELS)}")
        return v


class APNSPayload(BaseModel):
    """Complete notification body: ``aps`` plus top-level custom fields.

    Usage:
        payload = APNSPayload(
            aps=Aps(alert="Hello", content_available=1, badge=1, sound="default"),
            custom_data={"custom_key": "custom_value"},
        )
        body = payload.to_json()
    """

    aps: Aps
    custom_data: Dict[str, Any] = Field(default_factory=dict, description="Custom payload data")

    @field_validator("custom_data")
    @classmethod
    def validate_custom_data(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if "aps" in v:
            raise ValueError("custom_data must not contain the reserved 'aps' key")
        # Coerce datetimes, UUIDs, enums etc. to JSON types up front
        try:
            return to_jsonable_python(v)
        except PydanticSerializationError as e:
            raise ValueError(f"custom_data is not JSON serializable: {e}") from e

    def to_apns_dict(self) -> Dict[str, Any]:
        """Convert to the APNs payload dictionary.

        Returns:
            Dictionary ready for JSON serialization to APNs.
        """
        payload: Dict[str, Any] = {
            "aps": self.aps.model_dump(by_alias=True, exclude_none=True),
        }
        # Custom data sits at root level next to aps
        payload.update(self.custom_data)
        return payload

    def to_json(self) -> bytes:
        """Serialize to the UTF-8 JSON request body."""
        return json.dumps(
            self.to_apns_dict(),
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")


class DeliveryOptions(BaseModel):
    """Optional APNs request headers.

    Attributes:
        push_type: apns-push-type (alert, background, ...)
        priority: apns-priority (10 immediate, 5 power-considerate, 1 low)
        expiration: apns-expiration, UNIX epoch seconds; 0 means deliver once
        collapse_id: apns-collapse-id, at most 64 bytes
        apns_id: apns-id, canonical UUID echoed back by Apple
    """

    push_type: Optional[str] = None
    priority: Optional[int] = None
    expiration: Optional[int] = Field(None, ge=0)
    collapse_id: Optional[str] = None
    apns_id: Optional[str] = None

    @field_validator("push_type")
    @classmethod
    def validate_push_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in APNS_PUSH_TYPES:
            raise ValueError(f"Must be one of: {sorted(APNS_PUSH_TYPES)}")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in APNS_PRIORITIES:
            raise ValueError(f"Must be one of: {sorted(APNS_PRIORITIES)}")
        return v

    @field_validator("collapse_id")
    @classmethod
    def validate_collapse_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.encode("utf-8")) > APNS_COLLAPSE_ID_MAX_BYTES:
            raise ValueError(f"Must be at most {APNS_COLLAPSE_ID_MAX_BYTES} bytes")
        return v

    @field_validator("apns_id")
    @classmethod
    def validate_apns_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            return str(uuid.UUID(v))
        except ValueError:
            raise ValueError("Must be a UUID (8-4-4-4-12)")

    def to_headers(self) -> Dict[str, str]:
        """Header values for the options that are set."""
        headers: Dict[str, str] = {}
        if self.push_type is not None:
            headers["apns-push-type"] = self.push_type
        if self.priority is not None:
            headers["apns-priority"] = str(self.priority)
        if self.expiration is not None:
            headers["apns-expiration"] = str(self.expiration)
        if self.collapse_id is not None:
            headers["apns-collapse-id"] = self.collapse_id
        if self.apns_id is not None:
            headers["apns-id"] = self.apns_id
        return headers
