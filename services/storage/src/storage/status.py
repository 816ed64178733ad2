"""Processing-status lifecycle rules."""

from __future__ import annotations

from storage.errors import StatusTransitionError
from tv_common.models import ProcessingStatus

_TERMINAL_STATES: frozenset[ProcessingStatus] = frozenset(
    {ProcessingStatus.PROCESSED, ProcessingStatus.FAILED},
)

_ALLOWED_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset({ProcessingStatus.PROCESSED, ProcessingStatus.FAILED}),
    ProcessingStatus.PROCESSED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}


def is_terminal(status: ProcessingStatus) -> bool:
    return status in _TERMINAL_STATES


def allowed_next_statuses(status: ProcessingStatus) -> list[ProcessingStatus]:
    """Return deterministically ordered allowed successors for a status."""
    return sorted(_ALLOWED_TRANSITIONS.get(status, frozenset()), key=lambda s: s.value)


def ensure_transition(current: ProcessingStatus, new: ProcessingStatus) -> None:
    """Raise ``StatusTransitionError`` unless ``current -> new`` is allowed."""
    if new not in _ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise StatusTransitionError(
            current=current.value,
            attempted=new.value,
            allowed=[s.value for s in allowed_next_statuses(current)],
        )
