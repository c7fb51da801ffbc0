"""MemoryStats — Python heap usage over a benchmark, in whole megabytes."""

from pydantic import BaseModel, Field


class MemoryStats(BaseModel, frozen=True):
    initial_mb: int = Field(ge=0)
    current_mb: int = Field(ge=0)
    peak_mb: int = Field(ge=0)
