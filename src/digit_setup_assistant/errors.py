from __future__ import annotations


class DispatchError(RuntimeError):
    """Base class for failures raised while dispatching an action."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(message)
        self.action = action


class IllegalActionError(DispatchError):
    """Raised when an action is not legal for the current configuration state."""

    def __init__(self, action: str, legal_actions: tuple[str, ...] = (), *, message: str | None = None) -> None:
        if message is None:
            available = ", ".join(legal_actions) or "none"
            message = f"Action not allowed in current state: {action} (available: {available})"
        super().__init__(action, message)
        self.legal_actions = legal_actions


class StaleProposalConflict(IllegalActionError):
    """A confirmed proposal went stale because the state changed after it was made."""

    def __init__(self, action: str, legal_actions: tuple[str, ...] = ()) -> None:
        super().__init__(
            action,
            legal_actions,
            message=(
                f"The proposed action {action} is no longer available because the setup changed. "
                "Please ask again."
            ),
        )


class UnknownActionError(DispatchError):
    """Raised when an action name is missing from the action registry."""

    def __init__(self, action: str) -> None:
        super().__init__(action, f"Unknown action: {action}")


class InvalidTransitionError(DispatchError):
    """Raised when a handler leaves the ledger inconsistent or clears a completed step."""

    def __init__(self, action: str, reason: str) -> None:
        super().__init__(action, f"Action {action} was not applied: {reason}")
        self.reason = reason


class ClassifierUnavailable(RuntimeError):
    """Raised by a model-backed intent classifier that could not produce a label."""
