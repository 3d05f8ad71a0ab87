"""LangGraph StateGraph for one planning turn.

A turn evaluates readiness over the history, then either stops (ready for
document generation) or asks the next clarifying question. The opening
question of a conversation skips the evaluation and runs the "ask" node
alone via ``run_single_step``.

Nodes get the backend and the optional fragment callback through
``config["configurable"]``, so the compiled graph is shared by every
orchestrator.
"""

from typing import TypedDict

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph

from codeplot.state import ReadinessEvaluation, StructuredAnswer, Turn
from codeplot.utils.interpreter import answer_to_text


class PlanningTurnState(TypedDict):
    feature_request: str
    codebase_context: str
    history: list[Turn]
    readiness: ReadinessEvaluation | None
    question: StructuredAnswer | None


def _configurable(config: RunnableConfig | None) -> dict:
    return (config or {}).get("configurable", {})


def _ask_node(state: PlanningTurnState, config: RunnableConfig) -> dict:
    """Ask the next clarifying question and append it as an agent turn."""
    options = _configurable(config)
    answer = options["backend"].ask_clarifying_question(
        state["feature_request"],
        state["codebase_context"],
        state["history"],
        on_fragment=options.get("on_fragment"),
    )
    turn: Turn = {"role": "agent", "content": answer_to_text(answer)}
    return {"question": answer, "history": state["history"] + [turn]}


def _evaluate_node(state: PlanningTurnState, config: RunnableConfig) -> dict:
    """Ask the backend whether the history is enough to write the document."""
    backend = _configurable(config)["backend"]
    return {"readiness": backend.evaluate_readiness(state["history"], state["feature_request"])}


def _route_after_evaluation(state: PlanningTurnState) -> str:
    """Conditional edge: stop when ready, otherwise ask another question."""
    readiness = state.get("readiness") or {}
    if readiness.get("ready_for_adr"):
        return "ready"
    return "ask"


# --- Build the graph ---

workflow = StateGraph(PlanningTurnState)

workflow.add_node("evaluate", _evaluate_node)
workflow.add_node("ask", _ask_node)

workflow.set_entry_point("evaluate")

workflow.add_conditional_edges(
    "evaluate",
    _route_after_evaluation,
    {
        "ready": END,
        "ask": "ask",
    },
)

workflow.add_edge("ask", END)

planning_graph = workflow.compile()


# --- Step-execution helpers ---

_NODE_FNS = {
    "evaluate": _evaluate_node,
    "ask": _ask_node,
}


def make_config(backend, on_fragment=None) -> RunnableConfig:
    return {"configurable": {"backend": backend, "on_fragment": on_fragment}}


def new_turn_state(feature_request: str, codebase_context: str, history: list[Turn]) -> PlanningTurnState:
    """Working state for one turn. ``history`` is copied, never shared."""
    return {
        "feature_request": feature_request,
        "codebase_context": codebase_context,
        "history": list(history),
        "readiness": None,
        "question": None,
    }


def run_single_step(state: PlanningTurnState, node_name: str, config: RunnableConfig) -> PlanningTurnState:
    """Run a single node and return the updated state."""
    node_fn = _NODE_FNS[node_name]
    updates = node_fn(state, config)
    return {**state, **updates}


def run_planning_turn(state: PlanningTurnState, config: RunnableConfig) -> PlanningTurnState:
    """Run evaluate → (ask | stop) and return the final turn state."""
    return planning_graph.invoke(state, config=config)


def route_after_evaluation(state: PlanningTurnState) -> str:
    """Public wrapper around _route_after_evaluation."""
    return _route_after_evaluation(state)
