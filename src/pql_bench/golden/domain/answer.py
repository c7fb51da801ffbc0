"""Render a raw QA response as the plain-text answer stored in the eval set."""

import json
from typing import Any

NO_RESPONSE = "Error: No response received"


def format_answer(raw_response: Any) -> str:
    """Final assistant message, then one ``- identifier: data`` line per artifact.

    Only top-level ``modified_artifacts`` are listed; artifact data is rendered
    as indented JSON.
    """
    if not raw_response:
        return NO_RESPONSE
    if not isinstance(raw_response, dict):
        return str(raw_response)

    formatted = ""
    actions = raw_response.get("assistant_actions")
    if isinstance(actions, list) and actions and isinstance(actions[-1], dict):
        formatted += f"{actions[-1].get('message')}\n\n"

    artifacts = raw_response.get("modified_artifacts")
    if isinstance(artifacts, list) and artifacts:
        formatted += "Artifacts:\n"
        for artifact in artifacts:
            if not isinstance(artifact, dict):
                continue
            data = json.dumps(artifact.get("data"), indent=2, ensure_ascii=False)
            formatted += f"- {artifact.get('identifier')}: {data}\n"

    return formatted
