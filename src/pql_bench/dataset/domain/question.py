"""Question domain value object — one question/gold-answer pair from the eval set."""

from pydantic import BaseModel, Field


class Question(BaseModel, frozen=True):
    """Immutable value object for a single eval-set row. ``index`` is 1-based."""

    index: int = Field(ge=1)
    text: str = Field(min_length=1)
    gold_answer: str
