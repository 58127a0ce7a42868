"""Retry policy for transient transport failures.

Usage example:
    from resilient_api_client.infrastructure.resilience import RetryPolicy

    policy = RetryPolicy(max_retries=3, backoff_base_seconds=1.0, max_backoff_seconds=8.0)
    policy.compute_backoff(0)  # 1.0
    policy.compute_backoff(2)  # 4.0
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import override

from ..exceptions import TransportFailure
from ..protocols import RetryPolicy as RetryPolicyProtocol


@dataclass
class RetryPolicy(RetryPolicyProtocol):
    """Exponential backoff for timeouts and connection failures.

    Only failures whose `reason` is listed in `retry_reasons` are retried.
    Responses with any HTTP status never reach this policy.
    """

    max_retries: int = 3
    backoff_base_seconds: float = 1.0
    max_backoff_seconds: float = 8.0
    jitter_seconds: float = 0.0
    retry_reasons: tuple[str, ...] = ("timeout", "network")

    @override
    def should_retry(self, failure: TransportFailure, retry_count: int) -> bool:
        return failure.reason in self.retry_reasons and retry_count < self.max_retries

    @override
    def compute_backoff(self, attempt: int) -> float:
        """Return min(base * 2**attempt, max) plus optional jitter."""
        delay = min(self.max_backoff_seconds, self.backoff_base_seconds * (2**attempt))
        if self.jitter_seconds > 0:
            delay += random.uniform(0.0, self.jitter_seconds)
        return float(delay)
