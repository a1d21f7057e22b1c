"""Role capability matrix and the permission predicates built on it."""

from __future__ import annotations

from enum import StrEnum

from .models import Principal, Role, WorkItem


class Capability(StrEnum):
    TRANSITION_ANY_ITEM = "transition_any_item"
    LEAD_COLLECTION = "lead_collection"
    JOIN_COLLECTION = "join_collection"


# Capability matrix (fixed; one row per role)
ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.OWNER: frozenset(
        {
            Capability.TRANSITION_ANY_ITEM,
            Capability.LEAD_COLLECTION,
        }
    ),
    Role.LEAD: frozenset(
        {
            Capability.TRANSITION_ANY_ITEM,
            Capability.LEAD_COLLECTION,
            Capability.JOIN_COLLECTION,
        }
    ),
    Role.MEMBER: frozenset({Capability.JOIN_COLLECTION}),
}


def role_allows(role: Role, capability: Capability) -> bool:
    """Check the matrix only, ignoring account state."""
    return capability in ROLE_CAPABILITIES[role]


def has_capability(principal: Principal, capability: Capability) -> bool:
    """Return True when the principal is active and its role grants ``capability``."""
    if not principal.active:
        return False
    return capability in ROLE_CAPABILITIES[principal.role]


def can_transition(principal: Principal, item: WorkItem) -> bool:
    """The assignee, or any principal able to move any item, may transition."""
    if not principal.active:
        return False
    if item.is_assigned_to(principal.principal_id):
        return True
    return has_capability(principal, Capability.TRANSITION_ANY_ITEM)
