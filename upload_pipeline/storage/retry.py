"""Retry bookkeeping for persist calls.

A persist call moves ATTEMPTING(1) -> ... -> ATTEMPTING(n) and ends in either
SUCCEEDED or EXHAUSTED. Before attempt ``n + 1`` the caller waits
``backoff_delay(n)`` seconds, i.e. 2s, 4s, 8s... with the default base.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from upload_pipeline.storage.exceptions import StorageError
from upload_pipeline.storage.models import UploadAttempt


def backoff_delay(attempt: int, base: float = 2.0) -> float:
    """Seconds to wait after failed attempt ``attempt`` (1-based)."""
    if attempt < 1:
        raise ValueError("attempt is 1-based")
    return float(base**attempt)


class RetryPhase(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class RetryState:
    max_attempts: int
    backoff_base: float = 2.0
    attempt: int = 1
    phase: RetryPhase = RetryPhase.ATTEMPTING
    history: list[UploadAttempt] = field(default_factory=list)
    last_error: StorageError | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def finished(self) -> bool:
        return self.phase is not RetryPhase.ATTEMPTING

    def record_success(self) -> None:
        self._require_attempting()
        self.history.append(UploadAttempt(number=self.attempt, succeeded=True, at=_now()))
        self.phase = RetryPhase.SUCCEEDED

    def record_failure(self, error: StorageError) -> float | None:
        """Record a failed attempt; return the delay before the next one, or None if exhausted."""
        self._require_attempting()
        self.history.append(
            UploadAttempt(number=self.attempt, succeeded=False, at=_now(), error=str(error))
        )
        self.last_error = error
        if not error.retryable or self.attempt >= self.max_attempts:
            self.phase = RetryPhase.EXHAUSTED
            return None
        delay = backoff_delay(self.attempt, self.backoff_base)
        self.attempt += 1
        return delay

    def _require_attempting(self) -> None:
        if self.finished:
            raise RuntimeError(f"Retry state already {self.phase.value}")


class CancellationToken:
    """Cooperative cancellation for one request; waiting never blocks other requests."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""
        return self._event.wait(seconds)


def _now() -> datetime:
    return datetime.now(timezone.utc)
