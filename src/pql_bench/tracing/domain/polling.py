"""Backoff schedule for polling the tracing backend."""

MAX_ATTEMPTS = 10
BASE_DELAY_SECONDS = 1.0
MAX_DELAY_SECONDS = 30.0


def backoff_delay(
    attempt: int,
    base_seconds: float = BASE_DELAY_SECONDS,
    cap_seconds: float = MAX_DELAY_SECONDS,
) -> float:
    """Seconds to wait after a failed poll: ``min(2^(attempt-1) * base, cap)``."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return min(2 ** (attempt - 1) * base_seconds, cap_seconds)
