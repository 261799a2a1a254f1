"""User override validation and serialization.

User overrides are free-form preferences attached to a validation request
("do not contact before 9am", "skip promotional email"). They reach the LLM
prompt and the audit log, so both renderings are size-bounded.
"""

import json
from collections.abc import Mapping
from typing import Any

MAX_OVERRIDE_ENTRIES = 50
MAX_KEY_LENGTH = 100
MAX_VALUE_LENGTH = 1000

PROMPT_MAX_ENTRIES = 20
PROMPT_MAX_VALUE_LENGTH = 100
PROMPT_MAX_LENGTH = 4096
AUDIT_MAX_LENGTH = 1024

NO_OVERRIDES_TEXT = "No user overrides specified."


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def validate_user_overrides(overrides: Mapping[str, Any] | None) -> tuple[bool, list[str]]:
    """Check overrides against size limits.

    Returns:
        (is_valid, issues)
    """
    if overrides is None:
        return False, ["User overrides cannot be None"]

    issues: list[str] = []
    if len(overrides) > MAX_OVERRIDE_ENTRIES:
        issues.append(
            f"Too many override entries: {len(overrides)} (max {MAX_OVERRIDE_ENTRIES})"
        )

    for key, value in overrides.items():
        if not isinstance(key, str) or not key.strip():
            issues.append("Override keys cannot be empty")
            continue
        if len(key) > MAX_KEY_LENGTH:
            issues.append(f"Override key too long: {key[:20]}... (max {MAX_KEY_LENGTH} chars)")
        if value is not None and len(str(value)) > MAX_VALUE_LENGTH:
            issues.append(
                f"Override value too long for key '{key}' (max {MAX_VALUE_LENGTH} chars)"
            )

    return not issues, issues


def serialize_for_llm_prompt(
    overrides: Mapping[str, Any] | None,
    max_length: int = PROMPT_MAX_LENGTH,
) -> str:
    """Render overrides as a bulleted block for the LLM prompt."""
    if not overrides:
        return NO_OVERRIDES_TEXT

    lines = ["User Override Preferences:"]
    for key, value in list(overrides.items())[:PROMPT_MAX_ENTRIES]:
        text = "null" if value is None else str(value)
        lines.append(f"- {key}: {_truncate(text, PROMPT_MAX_VALUE_LENGTH)}")

    if len(overrides) > PROMPT_MAX_ENTRIES:
        lines.append(f"... and {len(overrides) - PROMPT_MAX_ENTRIES} more preferences")

    return _truncate("\n".join(lines), max_length)


def serialize_for_audit_log(
    overrides: Mapping[str, Any] | None,
    max_length: int = AUDIT_MAX_LENGTH,
) -> str:
    """Render overrides as compact JSON for audit events."""
    if not overrides:
        return "{}"

    try:
        text = json.dumps(dict(overrides), separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return '{"error":"Failed to serialize user overrides"}'
    return _truncate(text, max_length)
