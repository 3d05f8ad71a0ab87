"""Shared error types for codeplot."""


class CodeplotError(Exception):
    """Base exception for codeplot errors.

    Use this for user-facing errors that should have actionable messages.
    """

    pass


class BackendFailure(CodeplotError):
    """The agent backend raised while serving an orchestrator operation.

    Always raised ``from`` the backend's own exception. Conversation state is
    unchanged, so retrying the same operation is safe.
    """

    def __init__(self, operation: str, phase: str, cause: BaseException | None = None):
        self.operation = operation
        self.phase = phase
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Backend failed during {operation} (phase '{phase}'){detail}")


class InvalidPhaseTransition(CodeplotError):
    """An operation was invoked in a phase that does not support it."""

    def __init__(self, operation: str, phase: str, expected: tuple[str, ...]):
        self.operation = operation
        self.phase = phase
        self.expected = expected
        super().__init__(
            f"Cannot {operation} in phase '{phase}'. "
            f"Expected phase: {' or '.join(expected)}."
        )
