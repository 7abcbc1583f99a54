from sqlalchemy import Table, Column, String, Integer, Enum, DateTime, JSON, Text, MetaData, Index, CheckConstraint
from sqlalchemy.sql import func

from marketplace.domain.models import OrderStatus

metadata = MetaData()


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("buyer_id", String, nullable=False, index=True),
    Column("product_id", String, nullable=False),
    # snapshot of the product's owner and industry at creation time
    Column("seller_id", String, nullable=False, index=True),
    Column("industry", String, nullable=False, index=True),
    Column("quantity", Integer, nullable=False),
    Column("shipping_address", JSON, nullable=False),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderStatus.PENDING_APPROVAL
    ),
    Column("fulfillment_details", JSON, nullable=True),
    Column("admin_notes", Text, nullable=True),
    Column("cancellation_reason", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    CheckConstraint("quantity >= 1", name="ck_orders_quantity_positive")
)


outbox_events_tbl = Table(
    "outbox_events",
    metadata,
    Column("id", String, primary_key=True),
    Column("event_type", String, nullable=False),
    Column("event_data", JSON, nullable=False),
    Column("order_id", String, nullable=False),
    Column("status", String, default="pending"),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)

Index("ix_outbox_events_status_created_at", outbox_events_tbl.c.status, outbox_events_tbl.c.created_at)
