"""Section check for generated documents.

Deterministic and advisory: a document missing a section is still a
document. The caller decides whether to log or surface the gaps.
"""

import re

ADR_SECTIONS = ("Context", "Decision", "Consequences", "Implementation Plan")
PRD_SECTIONS = (
    "Problem Statement",
    "Goals & Success Metrics",
    "User Personas",
    "User Stories",
    "Functional Requirements",
    "Out of Scope",
)


def check_document_sections(content: str, required: tuple[str, ...] = ADR_SECTIONS) -> list[str]:
    """Return one issue string per required ``##`` section that is missing or empty.

    Empty list = every required section is present with a body.
    """
    if not content or not content.strip():
        return ["Document is empty."]

    issues = []
    if not re.search(r"^#[ \t]+\S", content, re.MULTILINE):
        issues.append("Missing level-one title heading.")

    for section in required:
        heading = re.compile(
            rf"^##[ \t]+{re.escape(section)}\b[^\n]*\n(.*?)(?=^##?[ \t]|\Z)",
            re.MULTILINE | re.DOTALL | re.IGNORECASE,
        )
        match = heading.search(content + "\n")
        if not match:
            issues.append(f"Missing section '{section}'.")
        elif not match.group(1).strip():
            issues.append(f"Section '{section}' is empty.")

    return issues
