"""Conversation state and the records derived from model output."""

from typing import Literal, TypedDict

Phase = Literal["planning", "ready_for_generation", "adr_generation", "completed"]
Role = Literal["user", "agent"]

PHASES = ("planning", "ready_for_generation", "adr_generation", "completed")


class Option(TypedDict):
    id: str  # Number as written by the model, unique within one answer.
    title: str
    description: str
    recommended: bool


class StructuredAnswer(TypedDict):
    header: str
    body_text: str
    option_prompt: str
    options: list[Option]
    is_complete: bool


class Turn(TypedDict):
    role: Role
    content: str


class Document(TypedDict):
    content: str
    title: str
    number: str
    implementation_plan: str


class ReadinessEvaluation(TypedDict):
    ready_for_adr: bool
    missing_information: list[str]  # Advisory only.
    reasoning: str


class ConversationState(TypedDict):
    feature_request: str
    codebase_context: str
    phase: Phase
    history: list[Turn]  # Append-only; replaced by reset or import.
    generated_document: Document | None


def empty_answer() -> StructuredAnswer:
    return {
        "header": "",
        "body_text": "",
        "option_prompt": "",
        "options": [],
        "is_complete": False,
    }


def empty_state() -> ConversationState:
    return {
        "feature_request": "",
        "codebase_context": "",
        "phase": "planning",
        "history": [],
        "generated_document": None,
    }
