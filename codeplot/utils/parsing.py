"""Shared parsing utilities for model responses and generated documents."""

import json
import re
from datetime import date

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
_TITLE_RE = re.compile(r"^#[ \t]+(?:ADR|PRD)?[ \t]*:?[ \t]*(?:\d[\d-]*[ \t]*[-:][ \t]*)?(.+?)[ \t]*$", re.MULTILINE)


def strip_fences(text: str) -> str:
    """Strip markdown code fences from LLM output if present."""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def parse_json_response(text: str) -> dict:
    """Parse a JSON object out of a model response, tolerating code fences.

    Raises ValueError (json.JSONDecodeError is a subclass) when the payload
    is not a JSON object.
    """
    data = json.loads(strip_fences(text))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}.")
    return data


def extract_title(content: str, default: str = "Untitled ADR") -> str:
    """Return the document title from its first level-one heading.

    Handles "# ADR: Title", "# ADR: 0007 - Title" and plain "# Title".
    """
    match = _TITLE_RE.search(content)
    return match.group(1).strip() if match else default


def extract_section(content: str, heading: str) -> str:
    """Return the body of the ``## heading`` section, or an empty string."""
    pattern = re.compile(
        rf"^##[ \t]+{re.escape(heading)}[ \t]*:?[ \t]*$\n?(.*?)(?=^##?[ \t]|\Z)",
        re.MULTILINE | re.DOTALL | re.IGNORECASE,
    )
    match = pattern.search(content)
    return match.group(1).strip() if match else ""


def next_document_number(today: date | None = None) -> str:
    """Date-based document number, e.g. 20250314-001."""
    today = today or date.today()
    return f"{today:%Y%m%d}-001"
