"""QAClient Protocol — structural interface for asking the QA backend a question."""

from typing import Protocol

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.qa.domain.response import QAResponse


class QAClient(Protocol):
    """Issues exactly one request per call; retries are not this layer's job."""

    async def ask(
        self, question: str, config: ResolvedConfig, system_prompt: str
    ) -> QAResponse: ...
