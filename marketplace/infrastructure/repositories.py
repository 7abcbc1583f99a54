import uuid
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import select, insert, update, false
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.domain.models import Order, OrderFilters, OrderStatus
from marketplace.domain.visibility import VisibilityScope
from marketplace.infrastructure.db_schema import orders_tbl, outbox_events_tbl
from marketplace.application.interfaces import OrderRepository, OutboxRepository


def _apply_scope(stmt, scope: VisibilityScope):
    """Role visibility restrictions, always applied before caller filters"""
    if scope.deny_all:
        return stmt.where(false())
    if scope.buyer_id is not None:
        stmt = stmt.where(orders_tbl.c.buyer_id == scope.buyer_id)
    if scope.seller_id is not None:
        stmt = stmt.where(orders_tbl.c.seller_id == scope.seller_id)
    if scope.industry is not None:
        stmt = stmt.where(orders_tbl.c.industry == scope.industry)
    if scope.statuses is not None:
        stmt = stmt.where(orders_tbl.c.status.in_(sorted(scope.statuses, key=lambda s: s.value)))
    return stmt


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def find_visible(self, order_id: str, scope: VisibilityScope) -> Optional[Order]:
        stmt = _apply_scope(select(orders_tbl), scope).where(orders_tbl.c.id == order_id)
        result = await self._session.execute(stmt)
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def find_all(self, scope: VisibilityScope, filters: OrderFilters) -> List[Order]:
        stmt = _apply_scope(select(orders_tbl), scope)

        if filters.status is not None:
            stmt = stmt.where(orders_tbl.c.status == filters.status)
        if filters.seller_id is not None:
            stmt = stmt.where(orders_tbl.c.seller_id == filters.seller_id)
        if filters.buyer_id is not None:
            stmt = stmt.where(orders_tbl.c.buyer_id == filters.buyer_id)

        stmt = (
            stmt.order_by(orders_tbl.c.created_at.desc(), orders_tbl.c.id)
            .limit(filters.limit)
            .offset(filters.offset)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, order: Order) -> None:
        stmt = insert(orders_tbl).values(
            id=order.id,
            buyer_id=order.buyer_id,
            product_id=order.product_id,
            seller_id=order.seller_id,
            industry=order.industry,
            quantity=order.quantity,
            shipping_address=order.shipping_address,
            status=order.status,
            fulfillment_details=order.fulfillment_details,
            admin_notes=order.admin_notes,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at,
            updated_at=order.updated_at
        )
        await self._session.execute(stmt)

    async def update_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        status: OrderStatus,
        changes: dict
    ) -> Optional[Order]:
        stmt = (
            update(orders_tbl)
            .where(
                orders_tbl.c.id == order_id,
                orders_tbl.c.status == expected_status
            )
            .values(
                status=status,
                updated_at=datetime.now(timezone.utc),
                **changes
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self.get_by_id(order_id)

    def _to_domain(self, row) -> Order:
        """DB row → Domain"""
        return Order(
            id=row.id,
            buyer_id=row.buyer_id,
            product_id=row.product_id,
            seller_id=row.seller_id,
            industry=row.industry,
            quantity=row.quantity,
            shipping_address=row.shipping_address,
            status=OrderStatus(row.status),
            fulfillment_details=row.fulfillment_details,
            admin_notes=row.admin_notes,
            cancellation_reason=row.cancellation_reason,
            created_at=row.created_at,
            updated_at=row.updated_at
        )


class SQLAlchemyOutboxRepository(OutboxRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, event_type: str, event_data: dict, order_id: str) -> str:
        event_id = str(uuid.uuid4())
        stmt = insert(outbox_events_tbl).values(
            id=event_id,
            event_type=event_type,
            event_data=event_data,  # JSON column serializes it
            order_id=order_id,
            status="pending",
            created_at=datetime.now(timezone.utc)
        )
        await self._session.execute(stmt)
        return event_id

    async def get_pending(self, limit: int = 10) -> List[dict]:
        result = await self._session.execute(
            select(outbox_events_tbl)
            .where(outbox_events_tbl.c.status == "pending")
            .order_by(outbox_events_tbl.c.created_at.asc())
            .limit(limit)
        )
        rows = result.fetchall()

        return [
            {
                "id": row.id,
                "event_type": row.event_type,
                "event_data": row.event_data,
                "order_id": row.order_id
            }
            for row in rows
        ]

    async def mark_as_published(self, event_id: str) -> None:
        stmt = (
            update(outbox_events_tbl)
            .where(outbox_events_tbl.c.id == event_id)
            .values(status="published")
        )
        await self._session.execute(stmt)
