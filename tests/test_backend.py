"""Tests for codeplot.agents.backend: LangChainBackend with mocked chat models."""

import json
from unittest.mock import MagicMock, patch

import pytest

from conftest import ADR_TEXT, QUESTION_TEXT

from codeplot.agents.backend import DEFAULT_HEADER, LangChainBackend, build_backend
from codeplot.agents.prompts import ADR_PROFILE, PRD_PROFILE


def _mock_llm_response(content: str):
    """Create a mock LLM response object."""
    response = MagicMock()
    response.content = content
    return response


def _streaming_llm(fragments):
    llm = MagicMock()
    llm.stream.return_value = iter([_mock_llm_response(f) for f in fragments])
    return llm


# --- ask_clarifying_question ---

class TestAskClarifyingQuestion:
    @patch("codeplot.agents.backend.load_guidance", return_value="")
    def test_streams_and_parses(self, _guid):
        fragments = [QUESTION_TEXT[:40], QUESTION_TEXT[40:120], QUESTION_TEXT[120:]]
        llm = _streaming_llm(fragments)
        backend = LangChainBackend(ADR_PROFILE, llm)

        answer = backend.ask_clarifying_question("Add rate limiting", "ctx", [])

        assert answer["header"] == "Rate limit scope"
        assert len(answer["options"]) == 2
        assert answer["is_complete"] is True
        llm.invoke.assert_not_called()

    def test_on_fragment_sees_every_fragment(self):
        fragments = ["# Pick a tool\n\n", "Select one:\n1. **A**\na\n", "2. **B**\nb\n"]
        seen = []
        backend = LangChainBackend(ADR_PROFILE, _streaming_llm(fragments))

        backend.ask_clarifying_question("x", "", [], on_fragment=seen.append)

        assert len(seen) == 3
        assert seen[0]["options"] == []
        assert len(seen[-1]["options"]) == 2

    def test_final_answer_complete_even_if_heuristic_is_not(self):
        backend = LangChainBackend(ADR_PROFILE, _streaming_llm(["# T\n\nno ending"]))
        answer = backend.ask_clarifying_question("x", "", [])
        assert answer["is_complete"] is True

    def test_default_header(self):
        backend = LangChainBackend(ADR_PROFILE, _streaming_llm(["What is the load?"]))
        answer = backend.ask_clarifying_question("x", "", [])
        assert answer["header"] == DEFAULT_HEADER

    def test_non_streaming_uses_invoke(self):
        llm = MagicMock()
        llm.invoke.return_value = _mock_llm_response(QUESTION_TEXT)
        backend = LangChainBackend(ADR_PROFILE, llm, streaming=False)

        answer = backend.ask_clarifying_question("x", "", [])

        assert answer["option_prompt"] == "Which scope do you prefer?"
        llm.stream.assert_not_called()

    def test_list_content_parts_joined(self):
        llm = MagicMock()
        llm.stream.return_value = iter([
            _mock_llm_response([{"type": "text", "text": "# Head"}, {"type": "text", "text": "er\n"}]),
            _mock_llm_response("Body."),
        ])
        answer = LangChainBackend(ADR_PROFILE, llm).ask_clarifying_question("x", "", [])
        assert answer["header"] == "Header"
        assert answer["body_text"] == "Body."

    def test_stream_error_propagates(self):
        def _broken():
            yield _mock_llm_response("# Partial")
            raise ConnectionError("reset by peer")

        llm = MagicMock()
        llm.stream.return_value = _broken()
        with pytest.raises(ConnectionError):
            LangChainBackend(ADR_PROFILE, llm).ask_clarifying_question("x", "", [])

    def test_prompt_contains_request_context_and_history(self):
        llm = _streaming_llm(["Ok."])
        history = [{"role": "user", "content": "Add rate limiting"}, {"role": "agent", "content": "Scope?"}]
        LangChainBackend(ADR_PROFILE, llm).ask_clarifying_question("Add rate limiting", "src/api.py", history)

        messages = llm.stream.call_args.args[0]
        assert messages[0]["role"] == "system"
        assert "FEATURE PLANNING" in messages[0]["content"]
        user = messages[1]["content"]
        assert "Add rate limiting" in user
        assert "src/api.py" in user
        assert "**Question**: Scope?" in user


# --- evaluate_readiness ---

class TestEvaluateReadiness:
    def _backend(self, content, profile=ADR_PROFILE):
        llm = MagicMock()
        llm.invoke.return_value = _mock_llm_response(content)
        return LangChainBackend(profile, llm)

    def test_ready(self):
        payload = {"readyForADR": True, "missingInformation": [], "reasoning": "All covered"}
        result = self._backend(json.dumps(payload)).evaluate_readiness([])
        assert result == {"ready_for_adr": True, "missing_information": [], "reasoning": "All covered"}

    def test_not_ready_with_fences(self):
        payload = {"readyForADR": False, "missingInformation": ["Error handling"], "reasoning": "Gaps"}
        result = self._backend(f"```json\n{json.dumps(payload)}\n```").evaluate_readiness([])
        assert result["ready_for_adr"] is False
        assert result["missing_information"] == ["Error handling"]

    def test_unparseable_is_not_ready(self):
        result = self._backend("I think we are ready!").evaluate_readiness([])
        assert result["ready_for_adr"] is False
        assert result["missing_information"] == ["Unable to evaluate readiness"]

    def test_truthy_string_is_not_ready(self):
        result = self._backend('{"readyForADR": "yes"}').evaluate_readiness([])
        assert result["ready_for_adr"] is False

    def test_prd_profile_reads_its_own_key(self):
        payload = {"readyForPRD": True, "missingInformation": [], "reasoning": "ok"}
        result = self._backend(json.dumps(payload), PRD_PROFILE).evaluate_readiness([])
        assert result["ready_for_adr"] is True

    def test_transport_error_propagates(self):
        llm = MagicMock()
        llm.invoke.side_effect = TimeoutError("slow")
        with pytest.raises(TimeoutError):
            LangChainBackend(ADR_PROFILE, llm).evaluate_readiness([])


# --- generate_document ---

class TestGenerateDocument:
    @patch("codeplot.agents.backend.load_guidance", return_value="")
    def test_adr_document_fields(self, _guid):
        generator = _streaming_llm([ADR_TEXT[:100], ADR_TEXT[100:]])
        backend = LangChainBackend(ADR_PROFILE, MagicMock(), generator)

        document = backend.generate_document([], "Add rate limiting", "ctx")

        assert document["content"] == ADR_TEXT.strip()
        assert document["title"] == "Token bucket rate limiting"
        assert document["implementation_plan"].startswith("1. Add the limiter middleware.")
        assert document["number"].endswith("-001")

    @patch("codeplot.agents.backend.load_guidance", return_value="- Rule one")
    def test_guidance_appended_to_system_prompt(self, _guid):
        generator = _streaming_llm([ADR_TEXT])
        LangChainBackend(ADR_PROFILE, MagicMock(), generator).generate_document([], "x")
        system = generator.stream.call_args.args[0][0]["content"]
        assert "## ADR Writing Guidelines" in system
        assert "- Rule one" in system

    @patch("codeplot.agents.backend.load_guidance", return_value="")
    def test_missing_sections_logged_not_raised(self, _guid):
        logger = MagicMock()
        generator = _streaming_llm(["# ADR: Thin\n\n## Context\nSomething.\n"])
        backend = LangChainBackend(ADR_PROFILE, MagicMock(), generator, logger=logger)

        document = backend.generate_document([], "x")

        assert document["title"] == "Thin"
        assert document["implementation_plan"] == ""
        logger.warning.assert_called_once()

    def test_prd_rendered_from_json(self):
        prd = {
            "title": "Rate limits",
            "sections": [
                {"title": "Problem Statement", "content": "Bursts hurt."},
                {"title": "Functional Requirements", "content": "Throttle per user."},
            ],
        }
        generator = MagicMock()
        generator.invoke.return_value = _mock_llm_response(json.dumps(prd))
        backend = LangChainBackend(PRD_PROFILE, MagicMock(), generator)

        document = backend.generate_document([], "x")

        assert document["title"] == "Rate limits"
        assert "## Problem Statement" in document["content"]
        assert document["implementation_plan"] == "Throttle per user."

    def test_prd_reprompts_once_on_bad_json(self):
        generator = MagicMock()
        generator.invoke.side_effect = [
            _mock_llm_response("not json"),
            _mock_llm_response('{"title": "Fixed", "sections": []}'),
        ]
        backend = LangChainBackend(PRD_PROFILE, MagicMock(), generator)

        document = backend.generate_document([], "x")

        assert generator.invoke.call_count == 2
        assert document["title"] == "Fixed"
        retry_messages = generator.invoke.call_args.args[0]
        assert retry_messages[-1]["role"] == "user"
        assert "raw JSON" in retry_messages[-1]["content"]

    def test_prd_raises_after_two_failures(self):
        generator = MagicMock()
        generator.invoke.return_value = _mock_llm_response("still not json")
        backend = LangChainBackend(PRD_PROFILE, MagicMock(), generator)
        with pytest.raises(ValueError, match="valid PRD"):
            backend.generate_document([], "x")


# --- implementation steps ---

class TestImplementationSteps:
    def test_returns_stripped_text(self):
        generator = MagicMock()
        generator.invoke.return_value = _mock_llm_response("  - Step 1: do it\n")
        backend = LangChainBackend(ADR_PROFILE, MagicMock(), generator)
        assert backend.generate_implementation_steps("# ADR: X", "") == "- Step 1: do it"
        user = generator.invoke.call_args.args[0][1]["content"]
        assert "(none provided)" in user


# --- build_backend ---

class TestBuildBackend:
    @patch("codeplot.agents.backend.ChatGoogleGenerativeAI")
    def test_google_from_config(self, MockLLM, mock_config):
        backend = build_backend()
        assert backend.profile is ADR_PROFILE
        assert MockLLM.call_count == 2
        MockLLM.assert_any_call(model="gemini-test", temperature=0.5)
        MockLLM.assert_any_call(model="gemini-test", temperature=0.7)

    @patch("codeplot.agents.backend.ChatAnthropic")
    def test_anthropic_provider(self, MockLLM, mock_config):
        mock_config["provider"] = "anthropic"
        build_backend()
        assert MockLLM.call_count == 2

    @patch("codeplot.agents.backend.ChatGoogleGenerativeAI")
    def test_workflow_override(self, MockLLM, mock_config):
        assert build_backend("prd").profile is PRD_PROFILE

    def test_unknown_workflow_raises(self, mock_config):
        with pytest.raises(ValueError, match="Unknown workflow"):
            build_backend("rfc")

    def test_unknown_provider_raises(self, mock_config):
        mock_config["provider"] = "acme"
        with pytest.raises(ValueError, match="Unknown provider"):
            build_backend()
