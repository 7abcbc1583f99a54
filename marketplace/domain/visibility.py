"""
Role-scoped order visibility.

Buyers only see an order once a seller has committed to it, sellers only
once an admin has approved it. The scope is applied before any caller
filter, so filters can narrow what an actor sees but never widen it.
"""

from dataclasses import dataclass
from typing import Optional

from marketplace.domain.models import Actor, Order, OrderStatus, Role


BUYER_VISIBLE_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.IN_PROGRESS,
        OrderStatus.DISPATCHED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    }
)

SELLER_VISIBLE_STATUSES: frozenset[OrderStatus] = BUYER_VISIBLE_STATUSES | {OrderStatus.APPROVED}


@dataclass(frozen=True)
class VisibilityScope:
    """Restrictions on the orders table. `None` means unrestricted."""
    buyer_id: Optional[str] = None
    seller_id: Optional[str] = None
    industry: Optional[str] = None
    statuses: Optional[frozenset[OrderStatus]] = None
    deny_all: bool = False

    def allows(self, order: Order) -> bool:
        if self.deny_all:
            return False
        if self.buyer_id is not None and order.buyer_id != self.buyer_id:
            return False
        if self.seller_id is not None and order.seller_id != self.seller_id:
            return False
        if self.industry is not None and order.industry != self.industry:
            return False
        if self.statuses is not None and order.status not in self.statuses:
            return False
        return True


def visibility_scope(actor: Actor) -> VisibilityScope:
    if actor.role == Role.ADMIN:
        return VisibilityScope()
    if actor.role == Role.BUYER:
        return VisibilityScope(buyer_id=actor.id, statuses=BUYER_VISIBLE_STATUSES)
    if actor.role == Role.SELLER:
        return VisibilityScope(seller_id=actor.id, statuses=SELLER_VISIBLE_STATUSES)
    if actor.role == Role.SUB_ADMIN:
        if not actor.industry:
            # a sub-admin without an assigned industry has nothing to moderate
            return VisibilityScope(deny_all=True)
        return VisibilityScope(industry=actor.industry)
    return VisibilityScope(deny_all=True)
