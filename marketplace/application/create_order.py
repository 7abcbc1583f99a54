import logging
from pydantic import BaseModel
from datetime import datetime, timezone
from typing import Any, List
import uuid

from marketplace.domain.models import Actor, Order, OrderStatus, Product, Role
from marketplace.domain.exceptions import (
    ForbiddenError, ProductNotFoundError, ProductNotApprovedError, ValidationError
)
from marketplace.domain.authorization import ensure_active
from marketplace.application.interfaces import ProductCatalog
from marketplace.application.events import ORDER_CREATED, order_created_event


logger = logging.getLogger(__name__)


class CreateOrderDTO(BaseModel):
    product_id: str
    quantity: int
    shipping_address: Any = None


class CheckoutDTO(BaseModel):
    lines: List[CreateOrderDTO]


def _validate(order_data: CreateOrderDTO) -> None:
    if not order_data.product_id or not order_data.product_id.strip():
        raise ValidationError("product_id is required")
    if order_data.quantity < 1:
        raise ValidationError(f"Quantity must be at least 1, got {order_data.quantity}")
    if not order_data.shipping_address:
        raise ValidationError("shipping_address is required")


def _ensure_buyer(actor: Actor) -> None:
    ensure_active(actor)
    if actor.role != Role.BUYER:
        raise ForbiddenError(f"Only buyers can place orders, got {actor.role.value}")


async def _load_approved_product(catalog: ProductCatalog, product_id: str) -> Product:
    product = await catalog.get_product(product_id)
    if not product:
        raise ProductNotFoundError(product_id)
    if not product.is_approved:
        raise ProductNotApprovedError(product_id, product.approval_status)
    return product


def _new_order(buyer: Actor, product: Product, order_data: CreateOrderDTO) -> Order:
    now = datetime.now(timezone.utc)
    return Order(
        id=str(uuid.uuid4()),
        buyer_id=buyer.id,
        product_id=product.id,
        seller_id=product.seller_id,
        industry=product.industry,
        quantity=order_data.quantity,
        shipping_address=order_data.shipping_address,
        status=OrderStatus.PENDING_APPROVAL,
        fulfillment_details=None,
        created_at=now,
        updated_at=now
    )


class CreateOrderUseCase:
    def __init__(self, unit_of_work, catalog_service: ProductCatalog):
        self._uow = unit_of_work
        self._catalog = catalog_service

    async def __call__(self, actor: Actor, order_data: CreateOrderDTO) -> Order:
        logger.info(f"Creating order for buyer {actor.id}, product {order_data.product_id}")

        # 1. Input and role checks
        _ensure_buyer(actor)
        _validate(order_data)

        # 2. Catalog check
        product = await _load_approved_product(self._catalog, order_data.product_id)

        # 3. Order + outbox event in one transaction
        order = _new_order(actor, product, order_data)
        async with self._uow() as uow:
            await uow.orders.create(order)
            await uow.outbox.create(
                event_type=ORDER_CREATED,
                event_data=order_created_event(order),
                order_id=order.id
            )
            await uow.commit()

        logger.info(f"Order created: {order.id} ({order.status.value})")
        return order


class CheckoutUseCase:
    """Places one order per line, all or nothing"""

    def __init__(self, unit_of_work, catalog_service: ProductCatalog):
        self._uow = unit_of_work
        self._catalog = catalog_service

    async def __call__(self, actor: Actor, checkout: CheckoutDTO) -> List[Order]:
        logger.info(f"Checkout for buyer {actor.id}: {len(checkout.lines)} lines")

        _ensure_buyer(actor)
        if not checkout.lines:
            raise ValidationError("Checkout requires at least one line")
        for line in checkout.lines:
            _validate(line)

        orders = []
        for line in checkout.lines:
            product = await _load_approved_product(self._catalog, line.product_id)
            orders.append(_new_order(actor, product, line))

        async with self._uow() as uow:
            for order in orders:
                await uow.orders.create(order)
                await uow.outbox.create(
                    event_type=ORDER_CREATED,
                    event_data=order_created_event(order),
                    order_id=order.id
                )
            await uow.commit()

        logger.info(f"Checkout for buyer {actor.id} created orders {[o.id for o in orders]}")
        return orders
