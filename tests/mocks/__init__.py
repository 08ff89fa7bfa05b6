"""
Mock helpers for tests.
"""
from tests.mocks.http_mocks import (
    RecordingHandler,
    create_apns_response,
)

__all__ = [
    "RecordingHandler",
    "create_apns_response",
]
