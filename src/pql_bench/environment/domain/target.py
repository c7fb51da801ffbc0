"""EnvironmentTarget — a deployment environment, optionally pinned to a build version."""

from enum import StrEnum

from pydantic import BaseModel, Field, computed_field


class BaseEnvironment(StrEnum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class EnvironmentTarget(BaseModel, frozen=True):
    """Immutable value object naming one environment to benchmark.

    A target with a version addresses a specific build of the base environment,
    e.g. ``production(3a3d68b8c8)``.
    """

    base_name: BaseEnvironment
    version: str | None = Field(default=None, min_length=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        if self.version:
            return f"{self.base_name.value}({self.version})"
        return self.base_name.value
