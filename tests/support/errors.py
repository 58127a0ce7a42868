"""Test-only exceptions for enforcing constraints."""

from __future__ import annotations


class NetworkIsolationError(RuntimeError):
    """Raised when a test attempts a real network connection."""

    def __init__(self, attempted: str) -> None:
        super().__init__(
            "Tests must not make network connections! "
            "Use FakeTransport or httpx.MockTransport instead. "
            f"Attempted connection to: {attempted}"
        )


class FakeResponseMissingError(ValueError):
    """Raised when a fake transport has no scripted outcome for a URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No scripted response for URL: {url}")


class WaitTimeoutError(AssertionError):
    """Raised when a polled condition never became true."""

    def __init__(self, description: str) -> None:
        super().__init__(f"Condition not reached: {description}")
