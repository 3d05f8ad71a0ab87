"""Markdown rendering for generated documents and prompt transcripts."""

from codeplot.state import Turn

_ROLE_LABELS = {"user": "Requirement", "agent": "Question"}


def render_prd_markdown(data: dict) -> str:
    """Render a PRD JSON object as Markdown.

    Expects ``{"title": str, "sections": [{"title": str, "content": str}]}``.
    Missing keys degrade to placeholders rather than raising.
    """
    lines = []

    title = data.get("title") or "Untitled PRD"
    lines.append(f"# PRD: {title}")
    lines.append("")

    for section in data.get("sections", []):
        section_title = section.get("title", "").strip()
        content = section.get("content", "")
        if isinstance(content, list):
            content = "\n".join(f"- {item}" for item in content)
        content = str(content).strip()

        if not section_title and not content:
            continue

        lines.append(f"## {section_title or 'Notes'}")
        lines.append("")
        if content:
            lines.append(content)
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def render_history(history: list[Turn]) -> str:
    """Render conversation turns for inclusion in a prompt.

    User turns are the requirements gathered so far; agent turns are the
    questions that were asked.
    """
    rendered = []
    for turn in history:
        label = _ROLE_LABELS.get(turn.get("role"), str(turn.get("role", "unknown")))
        rendered.append(f"**{label}**: {turn.get('content', '')}")
    return "\n\n".join(rendered)
