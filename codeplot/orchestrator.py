"""Phase orchestrator — drives a planning conversation from request to document.

Lifecycle: planning → (ready_for_generation) → adr_generation → completed.
``reset()`` is the only way back to planning once planning is over.

Every advancing operation works on a copy of the conversation state and
commits it only after the backend calls succeed, so a failed call leaves
the orchestrator exactly as it was and can simply be retried.
"""

import copy
import logging
from datetime import datetime, timezone

from codeplot.agents.backend import AgentBackend, FragmentCallback
from codeplot.errors import BackendFailure, InvalidPhaseTransition
from codeplot.graph import make_config, new_turn_state, run_planning_turn, run_single_step
from codeplot.state import PHASES, ConversationState, Document, Turn, empty_state
from codeplot.utils.validator import validate_feature_request


def _fold_phase(phase: str) -> str:
    """ready_for_generation is transient: entering it means entering adr_generation."""
    if phase == "ready_for_generation":
        return "adr_generation"
    return phase


class PhaseOrchestrator:
    """Owns one conversation's state and sequences its phases.

    Not thread-safe: one caller drives one conversation.
    """

    def __init__(self, backend: AgentBackend, logger: logging.Logger | None = None):
        self.backend = backend
        self.logger = logger or logging.getLogger(__name__)
        self._state: ConversationState = empty_state()

    # --- phase-advancing operations ---

    def start_planning(
        self,
        feature_request: str,
        codebase_context: str = "",
        on_fragment: FragmentCallback | None = None,
    ) -> dict:
        """Seed the conversation and ask the opening clarifying question.

        Returns a ``planning_question`` envelope. Raises ValueError for an
        empty feature request.
        """
        self._require_phase("start planning", ("planning",))
        feature_request = validate_feature_request(feature_request)
        codebase_context = codebase_context or ""

        self.logger.info("Starting planning: %.100s", feature_request)
        opening: Turn = {"role": "user", "content": feature_request}
        turn = new_turn_state(feature_request, codebase_context, [opening])

        turn = self._call_backend(
            "start_planning",
            lambda: run_single_step(turn, "ask", make_config(self.backend, on_fragment)),
        )

        self._state = {
            "feature_request": feature_request,
            "codebase_context": codebase_context,
            "phase": "planning",
            "history": turn["history"],
            "generated_document": None,
        }
        return self._envelope("planning_question", turn["question"])

    def continue_conversation(self, user_reply: str, on_fragment: FragmentCallback | None = None) -> dict:
        """Record the user's reply and either ask again or move to generation.

        Returns ``planning_question`` while more information is needed, or
        ``ready_for_adr`` (carrying the readiness evaluation) once the
        backend judges the conversation sufficient.
        """
        self._require_phase("continue the conversation", ("planning",))

        reply: Turn = {"role": "user", "content": user_reply}
        turn = new_turn_state(
            self._state["feature_request"],
            self._state["codebase_context"],
            self._state["history"] + [reply],
        )

        turn = self._call_backend(
            "continue_conversation",
            lambda: run_planning_turn(turn, make_config(self.backend, on_fragment)),
        )

        readiness = turn["readiness"] or {}
        self._state["history"] = turn["history"]
        if readiness.get("ready_for_adr"):
            self._state["phase"] = _fold_phase("ready_for_generation")
            self.logger.info("Planning complete, ready for document generation: %s", readiness.get("reasoning", ""))
            return self._envelope("ready_for_adr", readiness)

        self.logger.info(
            "More information needed (%d missing item(s))",
            len(readiness.get("missing_information", [])),
        )
        return self._envelope("planning_question", turn["question"])

    def generate_adr(self, on_fragment: FragmentCallback | None = None) -> dict:
        """Generate the document from the full history and complete the conversation."""
        self._require_phase("generate the ADR", ("adr_generation",))

        document: Document = self._call_backend(
            "generate_adr",
            lambda: self.backend.generate_document(
                list(self._state["history"]),
                self._state["feature_request"],
                self._state["codebase_context"],
                on_fragment=on_fragment,
            ),
        )

        self._state["history"] = self._state["history"] + [
            {"role": "agent", "content": document["content"]}
        ]
        self._state["generated_document"] = document
        self._state["phase"] = "completed"
        return self._envelope("adr_generated", document)

    def generate_detailed_implementation(self, document_content: str | None = None) -> dict:
        """Ask for step-by-step implementation guidance. Does not change state.

        Uses the generated document unless ``document_content`` is given.
        """
        if document_content is None:
            self._require_phase("generate implementation steps", ("completed",))
            document = self._state["generated_document"] or {}
            document_content = document.get("content", "")

        steps = self._call_backend(
            "generate_detailed_implementation",
            lambda: self.backend.generate_implementation_steps(
                document_content, self._state["codebase_context"]
            ),
        )
        return {"type": "implementation_steps", "steps": steps}

    def reset(self) -> None:
        """Return to planning from any phase, dropping the whole conversation."""
        self._state = empty_state()

    # --- accessors ---

    def get_current_phase(self) -> str:
        return self._state["phase"]

    def get_feature_request(self) -> str:
        return self._state["feature_request"]

    def get_conversation_history(self) -> list[Turn]:
        return copy.deepcopy(self._state["history"])

    def get_generated_document(self) -> Document | None:
        return copy.deepcopy(self._state["generated_document"])

    def get_planning_session_summary(self) -> dict:
        """Counts of questions and answers so far, excluding the opening request."""
        history = self._state["history"]
        user_turns = [t for t in history if t["role"] == "user"]
        questions = [t for t in history if t["role"] == "agent"]
        if self._state["generated_document"] is not None and questions:
            questions = questions[:-1]  # The document turn is not a question.

        return {
            "feature_request": self._state["feature_request"],
            "total_questions": len(questions),
            "total_responses": max(len(user_turns) - 1, 0),
            "current_phase": self._state["phase"],
            "key_requirements": [t["content"] for t in user_turns[1:]],
        }

    # --- session continuity ---

    def export_session(self) -> dict:
        """Snapshot of the full conversation state as plain data."""
        snapshot = copy.deepcopy(dict(self._state))
        snapshot["exported_at"] = datetime.now(timezone.utc).isoformat()
        return snapshot

    def import_session(self, snapshot: dict) -> None:
        """Replace the current state with ``snapshot``.

        Permissive by contract: missing fields default to empty and phase /
        history consistency is not checked.
        """
        phase = _fold_phase(snapshot.get("phase") or "planning")
        if phase not in PHASES:
            self.logger.warning("Imported session has unknown phase '%s'; keeping it as-is.", phase)

        self._state = {
            "feature_request": snapshot.get("feature_request") or "",
            "codebase_context": snapshot.get("codebase_context") or "",
            "phase": phase,
            "history": copy.deepcopy(list(snapshot.get("history") or [])),
            "generated_document": copy.deepcopy(snapshot.get("generated_document")),
        }

    # --- internals ---

    def _require_phase(self, operation: str, expected: tuple[str, ...]) -> None:
        if self._state["phase"] not in expected:
            raise InvalidPhaseTransition(operation, self._state["phase"], expected)

    def _call_backend(self, operation: str, call):
        try:
            return call()
        except Exception as exc:
            self.logger.error("Backend failed during %s in phase '%s': %s", operation, self._state["phase"], exc)
            raise BackendFailure(operation, self._state["phase"], exc) from exc

    def _envelope(self, kind: str, data) -> dict:
        return {
            "type": kind,
            "data": copy.deepcopy(data),
            "conversation_history": self.get_conversation_history(),
        }
