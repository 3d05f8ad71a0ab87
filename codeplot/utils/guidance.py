"""Distilled ADR writing guidance for injection into the generator prompt."""

# Imperative rules for LLM consumption. Keep each rule to one idea.
_GUIDANCE_RULES = """\
- State the forces behind the decision in Context: the problem, constraints, and \
what happens if nothing is done.
- Write the Decision in active voice ("We will ..."), naming the chosen option and \
the alternatives that were considered and rejected.
- List Consequences on both sides: what becomes easier and what becomes harder, \
including operational cost and migration effort.
- Tie every requirement the user confirmed during planning to a part of the \
decision; do not introduce requirements the user did not state.
- Cover failure handling: how errors surface, what is retried, and what is \
rolled back when a step fails part way.
- Name integration points with the existing codebase by module or file when the \
codebase context makes them known.
- Keep the Implementation Plan to ordered, independently verifiable steps, each \
with a clear done condition.
- Call out security, privacy and performance implications explicitly, even when \
the answer is "none".\
"""


def load_guidance() -> str:
    """Return the distilled ADR guidance rules.

    Returns an empty string if guidance is disabled in config
    (set guidance_enabled to false or remove it).
    """
    from codeplot.config import get_config

    config = get_config()
    if not config.get("guidance_enabled", False):
        return ""

    return _GUIDANCE_RULES
