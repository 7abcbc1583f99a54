from marketplace.domain.models import Actor, Order, Role
from marketplace.domain.exceptions import ForbiddenError


def ensure_active(actor: Actor) -> None:
    """Banned accounts may not touch orders at all"""
    if actor.is_banned:
        raise ForbiddenError(f"User {actor.id} is banned")


def ensure_can_act_on(order: Order, actor: Actor) -> None:
    """Business rule: buyer and seller own the order jointly, admins override.

    Raises ForbiddenError when the actor has no authority over this order.
    Whether the requested transition itself is legal is checked separately.
    """
    ensure_active(actor)

    if actor.role == Role.ADMIN:
        return
    if actor.role == Role.SELLER:
        if not order.is_owned_by_seller(actor.id):
            raise ForbiddenError(f"Order {order.id} does not belong to seller {actor.id}")
        return
    if actor.role == Role.BUYER:
        if not order.is_owned_by_buyer(actor.id):
            raise ForbiddenError(f"Order {order.id} does not belong to buyer {actor.id}")
        return
    if actor.role == Role.SUB_ADMIN:
        if not actor.industry or actor.industry != order.industry:
            raise ForbiddenError(
                f"Sub-admin {actor.id} ({actor.industry}) cannot act on {order.industry} orders"
            )
        return
    raise ForbiddenError(f"Role {actor.role} cannot act on orders")
