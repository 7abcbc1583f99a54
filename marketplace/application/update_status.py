import logging
from pydantic import BaseModel
from typing import Optional

from marketplace.domain.models import Actor, Order, OrderStatus, Role
from marketplace.domain.exceptions import (
    ConflictError, ForbiddenError, InvalidTransitionError, OrderNotFoundError, ValidationError
)
from marketplace.domain.authorization import ensure_active, ensure_can_act_on
from marketplace.domain.visibility import visibility_scope
from marketplace.domain.transitions import (
    FULFILLMENT_STATUSES, PRE_FULFILLMENT_STATUSES, is_valid_transition
)
from marketplace.application.events import ORDER_STATUS_CHANGED, status_changed_event

logger = logging.getLogger(__name__)


class TransitionStatusDTO(BaseModel):
    order_id: str
    status: OrderStatus
    fulfillment_details: Optional[dict] = None
    reason: Optional[str] = None


class ApproveRejectDTO(BaseModel):
    order_id: str
    status: OrderStatus
    reason: Optional[str] = None


class ConfirmOrderDTO(BaseModel):
    order_id: str
    fulfillment_details: Optional[dict] = None


class CancelOrderDTO(BaseModel):
    order_id: str
    reason: Optional[str] = None


def transition_changes(
    target: OrderStatus,
    fulfillment_details: Optional[dict] = None,
    reason: Optional[str] = None
) -> dict:
    """Side fields written together with the new status"""
    changes = {}
    if target in FULFILLMENT_STATUSES and fulfillment_details:
        changes["fulfillment_details"] = fulfillment_details
    elif target in PRE_FULFILLMENT_STATUSES:
        changes["fulfillment_details"] = None
    elif fulfillment_details:
        logger.warning(f"Ignoring fulfillment details for target status {target.value}")

    if reason is not None:
        if target == OrderStatus.CANCELLED:
            changes["cancellation_reason"] = reason
        elif target == OrderStatus.REJECTED:
            changes["admin_notes"] = reason
    return changes


async def _load_for(uow, order_id: str, actor: Actor) -> Order:
    """Loads an order the actor has authority over and can currently see"""
    order = await uow.orders.get_by_id(order_id)
    if not order:
        raise OrderNotFoundError(order_id)
    ensure_can_act_on(order, actor)
    if not visibility_scope(actor).allows(order):
        # an owner whose order is still in a hidden status gets the same answer as GET
        raise OrderNotFoundError(order_id)
    return order


async def apply_transition(uow, order: Order, actor: Actor, target: OrderStatus, changes: dict) -> Order:
    """Validates against the transition matrix and writes with compare-and-swap.

    The caller owns the unit of work and commits it.
    """
    if not is_valid_transition(order.status, target, actor.role):
        logger.warning(
            f"Rejected transition {order.status.value} -> {target.value} "
            f"by {actor.role.value} {actor.id} on order {order.id}"
        )
        raise InvalidTransitionError(order.status, target, actor.role)

    updated = await uow.orders.update_status(
        order.id,
        expected_status=order.status,
        status=target,
        changes=changes
    )
    if updated is None:
        logger.warning(f"Order {order.id} left {order.status.value} before the write, giving up")
        raise ConflictError(order.id, order.status)

    await uow.outbox.create(
        event_type=ORDER_STATUS_CHANGED,
        event_data=status_changed_event(updated, order.status, actor),
        order_id=order.id
    )
    logger.info(
        f"Order {order.id}: {order.status.value} -> {target.value} by {actor.role.value} {actor.id}"
    )
    return updated


class TransitionOrderStatusUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, dto: TransitionStatusDTO) -> Order:
        async with self._uow() as uow:
            order = await _load_for(uow, dto.order_id, actor)
            updated = await apply_transition(
                uow, order, actor, dto.status,
                transition_changes(dto.status, dto.fulfillment_details, dto.reason)
            )
            await uow.commit()
            return updated


class ApproveRejectOrderUseCase:
    """Admin / sub-admin moderation of a pending order"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, dto: ApproveRejectDTO) -> Order:
        ensure_active(actor)
        if actor.role not in (Role.ADMIN, Role.SUB_ADMIN):
            raise ForbiddenError("Only admins and sub-admins can approve or reject orders")
        if dto.status not in (OrderStatus.APPROVED, OrderStatus.REJECTED):
            raise ValidationError(f"Invalid status for approval/rejection: {dto.status.value}")

        async with self._uow() as uow:
            order = await _load_for(uow, dto.order_id, actor)
            if order.status != OrderStatus.PENDING_APPROVAL:
                raise InvalidTransitionError(order.status, dto.status, actor.role)

            changes = {"admin_notes": dto.reason} if dto.reason is not None else {}
            updated = await apply_transition(uow, order, actor, dto.status, changes)
            await uow.commit()
            return updated


class ConfirmOrderUseCase:
    """Seller commits to an approved order and records how it will be fulfilled"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, dto: ConfirmOrderDTO) -> Order:
        ensure_active(actor)
        if actor.role != Role.SELLER:
            raise ForbiddenError("Only the seller can confirm an order")
        if not dto.fulfillment_details:
            raise ValidationError("Fulfillment details are required to confirm an order")

        async with self._uow() as uow:
            order = await _load_for(uow, dto.order_id, actor)
            if order.status != OrderStatus.APPROVED:
                raise InvalidTransitionError(order.status, OrderStatus.CONFIRMED, actor.role)

            updated = await apply_transition(
                uow, order, actor, OrderStatus.CONFIRMED,
                {"fulfillment_details": dto.fulfillment_details}
            )
            await uow.commit()
            return updated


class CancelOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, dto: CancelOrderDTO) -> Order:
        async with self._uow() as uow:
            order = await _load_for(uow, dto.order_id, actor)
            updated = await apply_transition(
                uow, order, actor, OrderStatus.CANCELLED,
                transition_changes(OrderStatus.CANCELLED, reason=dto.reason)
            )
            await uow.commit()
            return updated
