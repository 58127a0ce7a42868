"""Exports for test fakes."""

from .auth import FakeTokenRefresher, RecordingAuthRedirect
from .sleep import RecordingSleep
from .transport import FakeTransport

__all__ = [
    "FakeTokenRefresher",
    "FakeTransport",
    "RecordingAuthRedirect",
    "RecordingSleep",
]
