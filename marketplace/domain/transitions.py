"""
Order lifecycle transition matrix.

Keyed by actor role, then by current status; the value is the set of
statuses that role may move an order to. Admins are not listed per status:
they may move an order from any status to any status, including the one it
is already in.
"""

from marketplace.domain.models import OrderStatus, Role


TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.REJECTED,
        OrderStatus.CANCELLED,
        OrderStatus.DELIVERED,
    }
)

ROLE_TRANSITIONS: dict[Role, dict[OrderStatus, frozenset[OrderStatus]]] = {
    Role.SUB_ADMIN: {
        OrderStatus.PENDING_APPROVAL: frozenset({OrderStatus.APPROVED, OrderStatus.REJECTED}),
    },
    Role.SELLER: {
        OrderStatus.APPROVED: frozenset({OrderStatus.CONFIRMED}),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.IN_PROGRESS}),
        OrderStatus.IN_PROGRESS: frozenset({OrderStatus.DISPATCHED}),
    },
    Role.BUYER: {
        OrderStatus.DISPATCHED: frozenset({OrderStatus.DELIVERED}),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.CANCELLED}),
        OrderStatus.IN_PROGRESS: frozenset({OrderStatus.CANCELLED}),
    },
}

# Targets that may carry seller-supplied fulfillment details.
FULFILLMENT_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.CONFIRMED, OrderStatus.IN_PROGRESS}
)

# An order moved back to one of these no longer has a fulfillment commitment.
PRE_FULFILLMENT_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PENDING_APPROVAL, OrderStatus.APPROVED}
)


def is_terminal(status: OrderStatus) -> bool:
    """Return True if no further workflow transition leaves this status."""
    return status in TERMINAL_STATUSES


def allowed_targets(current: OrderStatus, role: Role) -> frozenset[OrderStatus]:
    """Statuses the given role may move an order in `current` to."""
    if role == Role.ADMIN:
        return frozenset(OrderStatus)
    return ROLE_TRANSITIONS.get(role, {}).get(current, frozenset())


def is_valid_transition(current: OrderStatus, target: OrderStatus, role: Role) -> bool:
    return target in allowed_targets(current, role)
