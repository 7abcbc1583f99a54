import logging
from typing import List

from marketplace.domain.models import Actor, Order, OrderFilters
from marketplace.domain.exceptions import OrderNotFoundError, ValidationError
from marketplace.domain.authorization import ensure_active
from marketplace.domain.visibility import visibility_scope

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, order_id: str) -> Order:
        ensure_active(actor)
        async with self._uow() as uow:
            order = await uow.orders.find_visible(order_id, visibility_scope(actor))
            if not order:
                # absent and invisible look the same to the caller
                raise OrderNotFoundError(order_id)
            return order


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, filters: OrderFilters | None = None) -> List[Order]:
        ensure_active(actor)
        filters = filters or OrderFilters()
        if filters.limit < 1 or filters.limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if filters.offset < 0:
            raise ValidationError("offset must not be negative")

        scope = visibility_scope(actor)
        async with self._uow() as uow:
            orders = await uow.orders.find_all(scope, filters)
        logger.info(f"Listed {len(orders)} orders for {actor.role.value} {actor.id}")
        return orders
