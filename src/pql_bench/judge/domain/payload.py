"""Judge payloads — canonical shapes for answers submitted to the judge.

Answers come from three places: plain strings (the eval set's gold answers),
QA backend response objects, and structured gold-answer objects. Anything else
is classified as unparseable and rendered as a fixed placeholder instead of
failing the run.
"""

import json
from dataclasses import dataclass, field
from typing import Any, TypeAlias

UNPARSEABLE_MESSAGE = "Error formatting response"


@dataclass(frozen=True)
class TextPayload:
    text: str


@dataclass(frozen=True)
class QAResponsePayload:
    final_message: Any
    artifacts: list[Any] = field(default_factory=list)
    conversation: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class GoldAnswerPayload:
    final_message: Any
    artifacts: list[Any] = field(default_factory=list)
    conversation: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class UnparseablePayload:
    pass


JudgePayload: TypeAlias = (
    TextPayload | QAResponsePayload | GoldAnswerPayload | UnparseablePayload
)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def classify_payload(data: Any) -> JudgePayload:
    """Map raw answer data onto one of the JudgePayload variants."""
    if isinstance(data, str):
        return TextPayload(text=data)
    if not isinstance(data, dict):
        return UnparseablePayload()

    actions = data.get("assistant_actions")
    if isinstance(actions, list) and actions:
        if not all(isinstance(action, dict) for action in actions):
            return UnparseablePayload()
        return QAResponsePayload(
            final_message=actions[-1].get("message"),
            artifacts=_as_list(data.get("modified_artifacts")),
            conversation=[
                {
                    "message": action.get("message"),
                    "artifacts": _as_list(action.get("modified_artifacts")),
                }
                for action in actions[:-1]
            ],
        )

    if "answer" in data or "final_message" in data:
        return GoldAnswerPayload(
            final_message=data.get("answer") or data.get("final_message") or "",
            artifacts=_as_list(data.get("modified_artifacts")),
            conversation=_as_list(data.get("conversation")),
        )

    return UnparseablePayload()


def render_payload(payload: JudgePayload) -> str:
    """Serialize payload into the string submitted to the judge."""
    match payload:
        case TextPayload(text=text):
            return text
        case QAResponsePayload() | GoldAnswerPayload():
            document = {
                "final_message": payload.final_message,
                "artifacts": payload.artifacts,
                "conversation": payload.conversation,
            }
        case UnparseablePayload():
            document = {
                "final_message": UNPARSEABLE_MESSAGE,
                "artifacts": [],
                "conversation": [],
            }
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def format_for_judge(data: Any) -> str:
    """Classify and render data in one step."""
    return render_payload(payload=classify_payload(data=data))
