"""Compare-and-swap status transitions shared by orders and ticket orders.

A transition names the status the caller believes the entity is in and the
status it wants. It is applied only if the stored status still equals the
expected one. The caller always gets a `TransitionResult` back, so it can tell
"I caused the change" apart from "something else already moved it".
"""

from dataclasses import dataclass

from protean.exceptions import InvalidOperationError


class InvalidTransitionError(InvalidOperationError):
    """A status change that is not allowed, or whose expected status no longer holds."""

    def __init__(self, message: str, current_status: str | None = None, target_status: str | None = None) -> None:
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


@dataclass(frozen=True)
class TransitionResult:
    applied: bool
    current_status: str

    def ensure_applied(self, expected_status: str, target_status: str) -> "TransitionResult":
        """Raise if the transition did not happen. Used where a miss is a conflict."""
        if not self.applied:
            raise InvalidTransitionError(
                f"Expected status {expected_status}, found {self.current_status}; "
                f"cannot move to {target_status}",
                current_status=self.current_status,
                target_status=target_status,
            )
        return self

    def to_dict(self) -> dict:
        return {"applied": self.applied, "current_status": self.current_status}


def assert_transition_allowed(transitions: dict, current, target) -> None:
    """Raise InvalidTransitionError unless `current -> target` is in the table."""
    if target not in transitions.get(current, set()):
        raise InvalidTransitionError(
            f"Cannot transition from {current.value} to {target.value}",
            current_status=current.value,
            target_status=target.value,
        )
