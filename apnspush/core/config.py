"""Library configuration using Pydantic Settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
import os


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file"""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True  # JSON lines; set False for human-readable console output

    @field_validator('LOG_LEVEL', mode='after')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # APNS Configuration
    APNS_KEY_FILE: Optional[str] = None  # Path to .p8 auth key file
    APNS_KEY_ID: Optional[str] = None  # Key identifier from the developer portal
    APNS_TEAM_ID: Optional[str] = None  # Team identifier
    APNS_BUNDLE_ID: Optional[str] = None  # App bundle ID, used as apns-topic
    APNS_USE_SANDBOX: bool = False  # Use sandbox for development builds

    # Request timeouts
    APNS_TIMEOUT_SECONDS: float = 30.0
    APNS_CONNECT_TIMEOUT_SECONDS: float = 10.0

    @field_validator('APNS_TIMEOUT_SECONDS', 'APNS_CONNECT_TIMEOUT_SECONDS', mode='after')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    @property
    def apns_ready(self) -> bool:
        """Check if APNS is properly configured and ready to use."""
        return (
            self.APNS_KEY_FILE is not None
            and self.APNS_KEY_ID is not None
            and self.APNS_TEAM_ID is not None
            and self.APNS_BUNDLE_ID is not None
            and os.path.exists(self.APNS_KEY_FILE)
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


def get_settings() -> Settings:
    """Read settings fresh from the environment."""
    return Settings()

