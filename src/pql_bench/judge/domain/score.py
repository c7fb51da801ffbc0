"""CriterionResult and AccuracyResult — structured output of answer judging."""

from pydantic import BaseModel, ConfigDict


class CriterionResult(BaseModel):
    """Verdict of one judge call for a single criterion."""

    model_config = ConfigDict(frozen=True)

    passed: bool
    score: float
    details: str


class AccuracyResult(BaseModel):
    """Both criteria verdicts for one run; only built when both calls succeed."""

    model_config = ConfigDict(frozen=True)

    fuzzy_match: CriterionResult
    data_accuracy: CriterionResult
