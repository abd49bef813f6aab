"""
Run status model.

RunState mirrors the statuses the assistant service reports for a run.
classify() is the single dispatch point that turns a status into what the
poller should do on that tick.
"""

from enum import Enum

from exceptions.exceptions import UnknownRunStatusException


class RunState(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"

    @classmethod
    def parse(cls, status) -> "RunState":
        if isinstance(status, cls):
            return status
        try:
            return cls(str(status))
        except ValueError:
            raise UnknownRunStatusException(status) from None


class TickAction(str, Enum):
    WAIT = "wait"
    SUCCESS = "success"
    FAILURE = "failure"


class RunFailureKind(str, Enum):
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


_FAILURE_KINDS = {
    RunState.FAILED: RunFailureKind.FAILED,
    RunState.INCOMPLETE: RunFailureKind.FAILED,
    RunState.CANCELLED: RunFailureKind.CANCELLED,
    RunState.EXPIRED: RunFailureKind.EXPIRED,
}


def classify(state: RunState) -> TickAction:
    """Map a run state to the poller's action for this tick."""
    if state is RunState.COMPLETED:
        return TickAction.SUCCESS
    if state in _FAILURE_KINDS:
        return TickAction.FAILURE
    # queued, in_progress, requires_action, cancelling
    return TickAction.WAIT


def failure_kind(state: RunState) -> RunFailureKind:
    """Return the failure classification for a terminal non-success state."""
    return _FAILURE_KINDS[state]
