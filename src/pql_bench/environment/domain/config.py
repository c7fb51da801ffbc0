"""ResolvedConfig — concrete endpoints and credentials for one environment target."""

from pydantic import BaseModel, Field


class ResolvedConfig(BaseModel, frozen=True):
    """Everything needed to talk to one environment's QA, tracing and judge backends.

    Derived deterministically from an EnvironmentTarget and the process
    environment. Judge settings are optional; accuracy scoring only runs when
    all three are present.
    """

    qa_endpoint_url: str = Field(min_length=1)
    qa_api_key: str = Field(min_length=1)
    backend_url: str = Field(min_length=1)
    backend_auth_token: str = Field(min_length=1)
    trace_auth_token: str = Field(min_length=1)
    timezone: str = "UTC"
    judge_base_url: str | None = None
    judge_api_key: str | None = None
    judge_project_id: str | None = None

    @property
    def judge_enabled(self) -> bool:
        return bool(
            self.judge_base_url and self.judge_api_key and self.judge_project_id
        )
