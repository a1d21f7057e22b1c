"""Transition matrix, alias resolution, and validation.

Implements the 5-state work item lifecycle with 7 legal transition pairs.
The edge lookup is total over the state domain: the terminal state maps to
an empty edge set rather than an error path.
"""

from __future__ import annotations

from .errors import InvalidTransition
from .models import WorkItemStatus

CANONICAL_STATUSES: tuple[str, ...] = (
    "pending",
    "in_progress",
    "in_review",
    "blocked",
    "done",
)

INITIAL_STATUS = "pending"

STATUS_ALIASES: dict[str, str] = {
    "doing": "in_progress",
    "review": "in_review",
    "completed": "done",
}

TERMINAL_STATUSES: frozenset[str] = frozenset({"done"})

ALLOWED_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        ("pending", "in_progress"),
        ("in_progress", "in_review"),
        ("in_progress", "blocked"),
        ("in_progress", "done"),
        ("in_review", "in_progress"),
        ("in_review", "done"),
        ("blocked", "in_progress"),
    }
)

_EDGES: dict[str, frozenset[str]] = {
    status: frozenset(to for (frm, to) in ALLOWED_TRANSITIONS if frm == status)
    for status in CANONICAL_STATUSES
}


def resolve_status_alias(status: str) -> str:
    """Resolve alias to canonical status name. Returns input if not an alias."""
    normalized = status.strip().lower()
    return STATUS_ALIASES.get(normalized, normalized)


def is_terminal(status: str) -> bool:
    """Check if a status is terminal (done)."""
    return resolve_status_alias(status) in TERMINAL_STATUSES


def allowed_targets(status: str) -> frozenset[str]:
    """Return the set of statuses reachable in one step from ``status``.

    Raises :class:`InvalidTransition` only for values outside the state
    domain; ``done`` returns an empty set.
    """
    resolved = resolve_status_alias(status)
    try:
        WorkItemStatus(resolved)
    except ValueError:
        raise InvalidTransition(status, "?", f"Unknown status: {status}") from None
    return _EDGES[resolved]


def validate_transition(from_status: str, to_status: str) -> tuple[bool, str | None]:
    """Validate a status transition. Returns (ok, error_message).

    The error message always names both states.
    """
    resolved_from = resolve_status_alias(from_status)
    resolved_to = resolve_status_alias(to_status)

    for value, raw in ((resolved_from, from_status), (resolved_to, to_status)):
        try:
            WorkItemStatus(value)
        except ValueError:
            return False, f"Unknown status: {raw}"

    if resolved_from == resolved_to:
        return False, f"Illegal transition: {resolved_from} -> {resolved_to} (no change)"

    if (resolved_from, resolved_to) not in ALLOWED_TRANSITIONS:
        if resolved_from in TERMINAL_STATUSES:
            return (
                False,
                f"Illegal transition: {resolved_from} -> {resolved_to} "
                f"({resolved_from} is terminal)",
            )
        return False, f"Illegal transition: {resolved_from} -> {resolved_to}"

    return True, None
