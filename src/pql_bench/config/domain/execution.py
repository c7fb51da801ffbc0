"""Execution configuration models."""

from pydantic import BaseModel, Field


class ExecutionConfig(BaseModel, frozen=True):
    """How much work a benchmark does and how fast it is issued.

    ``runs`` requests are sent concurrently per run batch, ``num_batches``
    times per (question, environment). Questions themselves are scheduled in
    batches of ``batch_size`` with at most ``concurrency`` in flight, gated to
    ``rate_limit`` starts per second (0 disables the gate).
    """

    runs: int = Field(default=3, ge=1)
    num_batches: int = Field(default=1, ge=1)
    concurrency: int = Field(default=5, ge=1)
    batch_size: int = Field(default=10, ge=1)
    rate_limit: float = Field(default=0.0, ge=0)
    batch_delay: float = Field(default=0.0, ge=0)
    skip_accuracy: bool = False

    @property
    def total_runs(self) -> int:
        """Runs per (question, environment) pair across every run batch."""
        return self.runs * self.num_batches
