"""Agent backend — the three model-facing operations of a planning conversation.

``AgentBackend`` is the contract the orchestrator depends on.
``LangChainBackend`` implements it over LangChain chat models: one model for
questions and readiness, one for document generation. Which document type
it produces is decided by the ``BackendProfile`` it is built with.
"""

import logging
from typing import Callable, Protocol

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI

from codeplot.agents.prompts import IMPLEMENTATION_STEPS_PROMPT, BackendProfile, get_profile
from codeplot.config import get_config
from codeplot.state import Document, ReadinessEvaluation, StructuredAnswer, Turn
from codeplot.utils.completeness import check_document_sections
from codeplot.utils.formatter import render_history, render_prd_markdown
from codeplot.utils.guidance import load_guidance
from codeplot.utils.interpreter import DEFAULT_OPTION_PROMPT, ResponseInterpreter
from codeplot.utils.parsing import (
    extract_section,
    extract_title,
    next_document_number,
    parse_json_response,
)

FragmentCallback = Callable[[StructuredAnswer], None]

DEFAULT_HEADER = "Planning Question"


class AgentBackend(Protocol):
    def ask_clarifying_question(
        self,
        feature_request: str,
        codebase_context: str,
        history: list[Turn],
        on_fragment: FragmentCallback | None = None,
    ) -> StructuredAnswer: ...

    def evaluate_readiness(
        self, history: list[Turn], feature_request: str = ""
    ) -> ReadinessEvaluation: ...

    def generate_document(
        self,
        history: list[Turn],
        feature_request: str,
        codebase_context: str = "",
        on_fragment: FragmentCallback | None = None,
    ) -> Document: ...

    def generate_implementation_steps(self, document_content: str, codebase_context: str) -> str: ...


def _chunk_text(chunk) -> str:
    """Text of a streamed message chunk. Gemini may deliver a list of parts."""
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part if isinstance(part, str) else part.get("text", "")
            for part in content
            if isinstance(part, (str, dict))
        )
    return str(content or "")


def _context_prompt(feature_request: str, codebase_context: str, history: list[Turn]) -> str:
    parts = [f"## Feature Request\n{feature_request}"]
    if codebase_context:
        parts.append(f"## Codebase Context\n{codebase_context}")
    if history:
        parts.append(f"## Conversation History\n{render_history(history)}")
    return "\n\n".join(parts)


class LangChainBackend:
    """AgentBackend over LangChain chat models.

    ``question_llm`` serves clarifying questions and readiness checks;
    ``generator_llm`` writes the final document. Both only need ``invoke``
    and, when ``streaming`` is on, ``stream``.
    """

    def __init__(
        self,
        profile: BackendProfile,
        question_llm,
        generator_llm=None,
        streaming: bool = True,
        default_option_prompt: str = DEFAULT_OPTION_PROMPT,
        logger: logging.Logger | None = None,
    ):
        self.profile = profile
        self.question_llm = question_llm
        self.generator_llm = generator_llm or question_llm
        self.streaming = streaming
        self.default_option_prompt = default_option_prompt
        self.logger = logger or logging.getLogger(__name__)

    # --- streaming ---

    def _run(self, llm, messages: list[dict], on_fragment: FragmentCallback | None = None):
        """Invoke ``llm`` and return (full text, final StructuredAnswer).

        Streams when enabled, feeding every fragment through a fresh
        interpreter. The answer after the stream ends is the one returned,
        whatever the completion heuristic said along the way.
        """
        interpreter = ResponseInterpreter(self.default_option_prompt)

        if not self.streaming:
            text = _chunk_text(llm.invoke(messages))
            interpreter.process_fragment(text)
            answer = interpreter.finish()
            if on_fragment:
                on_fragment(answer)
            return text, answer

        try:
            for chunk in llm.stream(messages):
                fragment = _chunk_text(chunk)
                if not fragment:
                    continue
                answer = interpreter.process_fragment(fragment)
                if on_fragment:
                    on_fragment(answer)
        except Exception:
            interpreter.reset()
            raise

        text = interpreter.text
        return text, interpreter.finish()

    # --- AgentBackend ---

    def ask_clarifying_question(
        self,
        feature_request: str,
        codebase_context: str,
        history: list[Turn],
        on_fragment: FragmentCallback | None = None,
    ) -> StructuredAnswer:
        """Ask the model for the next clarifying question and parse it."""
        self.logger.debug(
            "Asking clarifying question (history=%d turns, context=%d chars)",
            len(history), len(codebase_context or ""),
        )
        messages = [
            {"role": "system", "content": self.profile.question_prompt},
            {
                "role": "user",
                "content": (
                    _context_prompt(feature_request, codebase_context, history)
                    + "\n\nAsk your next clarifying question. Focus on areas that need more detail."
                ),
            },
        ]
        text, answer = self._run(self.question_llm, messages, on_fragment)
        if not answer["header"]:
            answer["header"] = DEFAULT_HEADER
        self.logger.debug(
            "Question parsed: header=%r, %d options, %d chars",
            answer["header"], len(answer["options"]), len(text),
        )
        return answer

    def evaluate_readiness(self, history: list[Turn], feature_request: str = "") -> ReadinessEvaluation:
        """Ask the model whether planning has gathered enough to write the document.

        A response that is not the requested JSON counts as "not ready";
        transport errors propagate.
        """
        messages = [
            {"role": "system", "content": self.profile.readiness_prompt},
            {
                "role": "user",
                "content": (
                    _context_prompt(feature_request, "", history)
                    + f"\n\nEvaluate if we have enough information to create the {self.profile.name.upper()}."
                ),
            },
        ]
        response = self.question_llm.invoke(messages)
        raw = _chunk_text(response)

        try:
            data = parse_json_response(raw)
        except ValueError as exc:
            self.logger.warning(
                "Failed to parse readiness evaluation (%s). Treating as not ready. Response: %.500s",
                exc, raw,
            )
            return {
                "ready_for_adr": False,
                "missing_information": ["Unable to evaluate readiness"],
                "reasoning": "Failed to parse evaluation response",
            }

        missing = data.get("missingInformation") or []
        if not isinstance(missing, list):
            missing = [str(missing)]

        evaluation: ReadinessEvaluation = {
            "ready_for_adr": data.get(self.profile.ready_key) is True,
            "missing_information": [str(item) for item in missing],
            "reasoning": str(data.get("reasoning", "")),
        }
        self.logger.info(
            "Readiness: ready=%s, %d missing item(s)",
            evaluation["ready_for_adr"], len(evaluation["missing_information"]),
        )
        return evaluation

    def generate_document(
        self,
        history: list[Turn],
        feature_request: str,
        codebase_context: str = "",
        on_fragment: FragmentCallback | None = None,
    ) -> Document:
        """Write the final document from the full conversation."""
        system_content = self.profile.generator_prompt
        guidance = load_guidance() if self.profile.generator_output == "markdown" else ""
        if guidance:
            system_content += f"\n\n## ADR Writing Guidelines\n{guidance}"

        messages = [
            {"role": "system", "content": system_content},
            {
                "role": "user",
                "content": (
                    _context_prompt(feature_request, codebase_context, history)
                    + f"\n\nGenerate the {self.profile.name.upper()} based on this information."
                ),
            },
        ]

        if self.profile.generator_output == "json":
            content = self._generate_json_document(messages)
        else:
            content, _ = self._run(self.generator_llm, messages, on_fragment)
            content = content.strip()

        issues = check_document_sections(content, self.profile.required_sections)
        if issues:
            self.logger.warning(
                "Generated %s has %d structural issue(s): %s",
                self.profile.name.upper(), len(issues), "; ".join(issues),
            )

        document: Document = {
            "content": content,
            "title": extract_title(content, default=f"Untitled {self.profile.name.upper()}"),
            "number": next_document_number(),
            "implementation_plan": extract_section(content, self.profile.implementation_section),
        }
        self.logger.info("Generated %s '%s' (%d chars)", self.profile.name.upper(), document["title"], len(content))
        return document

    def _generate_json_document(self, messages: list[dict]) -> str:
        """Generate a JSON document and render it as Markdown.

        Re-prompts once on a malformed response before raising ValueError.
        """
        response = self.generator_llm.invoke(messages)
        raw = _chunk_text(response)
        try:
            data = parse_json_response(raw)
        except ValueError:
            messages = messages + [
                {"role": "assistant", "content": raw},
                {
                    "role": "user",
                    "content": (
                        "Your response did not match the required JSON schema. "
                        "Please try again with ONLY the raw JSON object — "
                        "no markdown fences, no commentary."
                    ),
                },
            ]
            raw = _chunk_text(self.generator_llm.invoke(messages))
            try:
                data = parse_json_response(raw)
            except ValueError as exc:
                raise ValueError(f"Failed to generate a valid {self.profile.name.upper()}.") from exc

        return render_prd_markdown(data)

    def generate_implementation_steps(self, document_content: str, codebase_context: str) -> str:
        messages = [
            {"role": "system", "content": IMPLEMENTATION_STEPS_PROMPT},
            {
                "role": "user",
                "content": (
                    f"## Document\n{document_content}\n\n"
                    f"## Codebase Context\n{codebase_context or '(none provided)'}\n\n"
                    "Generate detailed implementation steps that reference specific files "
                    "and provide actionable guidance."
                ),
            },
        ]
        return _chunk_text(self.generator_llm.invoke(messages)).strip()


def _make_llm(provider: str, model: str, temperature: float):
    if provider == "google":
        return ChatGoogleGenerativeAI(model=model, temperature=temperature)
    if provider == "anthropic":
        return ChatAnthropic(model=model, temperature=temperature)
    raise ValueError(f"Unknown provider '{provider}'. Must be one of: google, anthropic")


def build_backend(workflow: str | None = None, logger: logging.Logger | None = None) -> LangChainBackend:
    """Build the configured backend for ``workflow`` (defaults to config's)."""
    config = get_config()
    profile = get_profile(workflow or config.get("workflow", "adr"))
    provider = config.get("provider", "google")

    return LangChainBackend(
        profile,
        question_llm=_make_llm(provider, config["planning_model"], config.get("planning_temperature", 0.5)),
        generator_llm=_make_llm(provider, config["generator_model"], config.get("generator_temperature", 0.7)),
        streaming=config.get("streaming", True),
        default_option_prompt=config.get("default_option_prompt", DEFAULT_OPTION_PROMPT),
        logger=logger,
    )

