"""Session store contract and an in-memory implementation.

Snapshots are the plain dicts produced by ``PhaseOrchestrator.export_session``.
Where and how they are written to disk is left to the store.
"""

import copy
from typing import Protocol


class SessionStore(Protocol):
    def save(self, session_id: str, snapshot: dict) -> None: ...

    def load(self, session_id: str) -> dict | None: ...


class InMemorySessionStore:
    """Keeps snapshots in a dict. Stored and returned snapshots are copies."""

    def __init__(self):
        self._sessions: dict[str, dict] = {}

    def save(self, session_id: str, snapshot: dict) -> None:
        self._sessions[session_id] = copy.deepcopy(snapshot)

    def load(self, session_id: str) -> dict | None:
        snapshot = self._sessions.get(session_id)
        return copy.deepcopy(snapshot) if snapshot is not None else None

    def list_sessions(self) -> list[str]:
        return sorted(self._sessions)


def save_session(orchestrator, store: SessionStore, session_id: str) -> None:
    """Export ``orchestrator`` and save it under ``session_id``."""
    store.save(session_id, orchestrator.export_session())


def restore_session(orchestrator, store: SessionStore, session_id: str) -> bool:
    """Import the saved session into ``orchestrator``.

    Returns False (and leaves the orchestrator untouched) if nothing is saved
    under ``session_id``.
    """
    snapshot = store.load(session_id)
    if snapshot is None:
        return False
    orchestrator.import_session(snapshot)
    return True
