"""
Scheme status state machine.

Status changes are performed by the CRUD layer; the engine only ever evaluates
``active`` schemes. These helpers encode the transitions the engine relies on and
the rule that benefit fields are frozen once claims exist against a scheme.
"""

from .exceptions import FrozenSchemeError, InvalidStatusTransitionError
from .models import SchemeBase, SchemeStatus

ALLOWED_TRANSITIONS: dict[SchemeStatus, frozenset[SchemeStatus]] = {
    SchemeStatus.DRAFT: frozenset({SchemeStatus.PENDING}),
    SchemeStatus.PENDING: frozenset({SchemeStatus.ACTIVE}),
    SchemeStatus.ACTIVE: frozenset(
        {SchemeStatus.CLOSED, SchemeStatus.EXPIRED, SchemeStatus.CANCELLED}
    ),
    SchemeStatus.CLOSED: frozenset(),
    SchemeStatus.EXPIRED: frozenset(),
    SchemeStatus.CANCELLED: frozenset(),
}

# Fields that determine the benefit amount
FROZEN_FIELDS = ("slab_config", "discount_percent", "eligible_skus", "benefit_type")


def can_transition(current: SchemeStatus, target: SchemeStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(SchemeStatus(current), frozenset())


def validate_transition(current: SchemeStatus, target: SchemeStatus) -> SchemeStatus:
    """
    Check that a status change is allowed.

    Args:
        current: Status the scheme is in now
        target: Requested status

    Returns:
        The target status

    Raises:
        InvalidStatusTransitionError: If the transition is not permitted
    """
    current = SchemeStatus(current)
    target = SchemeStatus(target)
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current.value, target.value)
    return target


def is_terminal(status: SchemeStatus) -> bool:
    return not ALLOWED_TRANSITIONS[SchemeStatus(status)]


def changed_frozen_fields(before: SchemeBase, after: SchemeBase) -> list[str]:
    """Return the benefit fields that differ between two versions of a scheme."""
    changed = []
    for field_name in FROZEN_FIELDS:
        if getattr(before, field_name, None) != getattr(after, field_name, None):
            changed.append(field_name)
    if before.type != after.type:
        changed.append("type")
    return changed


def ensure_frozen_fields_unchanged(before: SchemeBase, after: SchemeBase) -> None:
    """
    Reject edits to benefit fields on a scheme that already has claims.

    Raises:
        FrozenSchemeError: If claims exist and a frozen field changed
    """
    if before.claims_generated <= 0:
        return
    changed = changed_frozen_fields(before, after)
    if changed:
        raise FrozenSchemeError(before.id, changed)
