"""Incremental interpreter for streamed planning answers.

The model answers in a loose markdown convention:

    # Short title

    Analysis paragraph(s).

    **Which approach do you prefer?**

    1. **First option** ⭐ RECOMMENDED
       Why you might pick it.

    2. **Second option**
       Why you might pick it.

    💬 Or type your own response.

Each fragment is appended to the accumulated text and the whole text is
parsed again. Answers are a few KB at most, so re-parsing is cheap and keeps
the result identical to a one-shot parse of the same text.
"""

import copy
import re

from codeplot.state import Option, StructuredAnswer, empty_answer

DEFAULT_OPTION_PROMPT = "Choose your preferred option:"
CUSTOM_OPTION_VALUE = "custom"
CUSTOM_OPTION_TITLE = "Enter your own response"

_HEADER_RE = re.compile(r"^#+[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$", re.MULTILINE)
# Heading line of a numbered option. Only counts once the line is terminated.
_OPTION_RE = re.compile(r"^[ \t]*(\d+)[ \t]*\.[ \t]*\*\*(.+?)\*\*([^\n]*)\r?\n", re.MULTILINE)
_RECOMMENDED_RE = re.compile(r"⭐|\bRECOMMENDED\b")
_FREEFORM_RE = re.compile(r"💬|\bcustom\b|\bown response\b", re.IGNORECASE)
_FREEFORM_LINE_RE = re.compile(r"^[^\n]*(?:💬|\bown response\b)[^\n]*$", re.MULTILINE | re.IGNORECASE)
_NUMBERED_LINE_RE = re.compile(r"^[ \t]*\d+[ \t]*\.", re.MULTILINE)
_PROMPT_WORDS_RE = re.compile(r"\b(?:choose|select|option|prefer)", re.IGNORECASE)
_BOLD_LINE_RE = re.compile(r"^\*\*(.+?)\*\*:?$")
_LEADING_BULLET_RE = re.compile(r"^\s*[-*]?\s*")
_TERMINAL_PUNCTUATION = (".", "?", "!")


def _parse_options(text: str) -> tuple[list[Option], int]:
    """Return the options in textual order and the offset of the first one (-1 if none)."""
    matches = list(_OPTION_RE.finditer(text))
    if not matches:
        return [], -1

    options: list[Option] = []
    seen: set[str] = set()
    for position, match in enumerate(matches, 1):
        number, title, rest = match.group(1), match.group(2), match.group(3)

        end = matches[position].start() if position < len(matches) else len(text)
        block = text[match.end():end]
        for stop_re in (_NUMBERED_LINE_RE, _FREEFORM_LINE_RE):
            stop = stop_re.search(block)
            if stop:
                block = block[:stop.start()]

        option_id = number if number not in seen else f"{number}-{position}"
        seen.add(option_id)

        options.append({
            "id": option_id,
            "title": title.strip(),
            "description": _LEADING_BULLET_RE.sub("", block.strip(), count=1),
            "recommended": bool(_RECOMMENDED_RE.search(rest + block)) or int(number) == 1,
        })

    return options, matches[0].start()


def _find_option_prompt(text: str, first_option_at: int) -> tuple[str, int]:
    """Find the prompt line directly above the option list.

    Returns the cleaned prompt and its offset, or ("", -1).
    """
    before = text[:first_option_at].rstrip()
    line_start = before.rfind("\n") + 1
    line = before[line_start:].strip()
    if not line or line.startswith("#"):
        return "", -1

    bold = _BOLD_LINE_RE.match(line)
    if bold:
        return bold.group(1).strip().rstrip(":"), line_start
    if _PROMPT_WORDS_RE.search(line):
        return line.replace("**", "").strip().rstrip(":").strip(), line_start
    return "", -1


def _looks_complete(text: str, has_options: bool) -> bool:
    tail = text.rstrip()
    if tail.endswith(_TERMINAL_PUNCTUATION):
        return True
    return has_options and bool(_FREEFORM_RE.search(text))


class ResponseInterpreter:
    """Accumulates the fragments of one answer and derives a StructuredAnswer.

    Call ``reset()`` before feeding a new answer. An instance belongs to one
    in-flight answer at a time.
    """

    def __init__(self, default_option_prompt: str = DEFAULT_OPTION_PROMPT):
        self.default_option_prompt = default_option_prompt
        self.reset()

    def reset(self) -> None:
        self._chunks: list[str] = []
        self._answer: StructuredAnswer = empty_answer()

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def process_fragment(self, fragment: str) -> StructuredAnswer:
        """Append ``fragment`` and return the structured view of everything so far."""
        if fragment:
            self._chunks.append(fragment)
        self._parse(self.text)
        return self.answer()

    def finish(self) -> StructuredAnswer:
        """Mark the stream as exhausted and take the final parse as authoritative.

        A trailing option heading without a newline counts once the stream
        has ended.
        """
        text = self.text
        if text and not text.endswith("\n"):
            self._parse(text + "\n")
        self._answer["is_complete"] = True
        return self.answer()

    def answer(self) -> StructuredAnswer:
        return copy.deepcopy(self._answer)

    def _parse(self, text: str) -> None:
        answer = self._answer

        header_match = _HEADER_RE.search(text)
        if header_match:
            answer["header"] = header_match.group(1).strip()

        options, first_option_at = _parse_options(text)
        body_end = len(text)
        if options:
            answer["options"] = options
            prompt, prompt_at = _find_option_prompt(text, first_option_at)
            answer["option_prompt"] = prompt or self.default_option_prompt
            body_end = prompt_at if prompt_at >= 0 else first_option_at

        body_start = header_match.end() if header_match else 0
        body = text[body_start:body_end].strip() if body_end > body_start else ""
        # A newly recognized header or option list can shrink the body to nothing.
        answer["body_text"] = body

        # Latched: a longer text never un-completes an answer.
        if not answer["is_complete"]:
            answer["is_complete"] = _looks_complete(text, bool(answer["options"]))

    def has_options(self) -> bool:
        return bool(self._answer["options"])

    def get_options(self) -> list[dict]:
        """Options for a selector, with a trailing free-form entry.

        Returns an empty list when the answer carries no real options.
        """
        if not self._answer["options"]:
            return []

        processed = [
            {
                "value": option.get("id") or str(index),
                "title": option["title"],
                "description": option.get("description", ""),
                "recommended": option.get("recommended", False),
            }
            for index, option in enumerate(self._answer["options"], 1)
        ]
        processed.append({
            "value": CUSTOM_OPTION_VALUE,
            "title": CUSTOM_OPTION_TITLE,
            "description": "",
            "recommended": False,
        })
        return processed

    def build_display_text(self) -> str:
        """Markdown for progressive rendering: header, body and option prompt."""
        parts = []
        if self._answer["header"]:
            parts.append(f"# {self._answer['header']}")
        if self._answer["body_text"]:
            parts.append(self._answer["body_text"])
        if self._answer["options"] and self._answer["option_prompt"]:
            parts.append(f"---\n\n**{self._answer['option_prompt']}**")
        return "\n\n".join(parts)


def answer_to_text(answer: StructuredAnswer) -> str:
    """Flatten a final answer into the content of an agent turn."""
    parts = []
    if answer.get("body_text"):
        parts.append(answer["body_text"])
    if answer.get("options"):
        if answer.get("option_prompt"):
            parts.append(answer["option_prompt"])
        parts.append("\n".join(
            f"{option['id']}. {option['title']}"
            + (" ⭐ RECOMMENDED" if option.get("recommended") else "")
            for option in answer["options"]
        ))
    if not parts and answer.get("header"):
        parts.append(answer["header"])
    return "\n\n".join(parts)
