"""
Shared fixtures: a throwaway SQLite database per test and in-memory
stand-ins for the product catalog, user directory and event publisher.
"""

import pytest
import pytest_asyncio

from marketplace.database import make_engine, make_session_factory
from marketplace.infrastructure.db_schema import metadata
from marketplace.infrastructure.unit_of_work import UnitOfWork
from marketplace.application.interfaces import ProductCatalog, UserDirectory, EventPublisher
from marketplace.application.create_order import CreateOrderUseCase, CreateOrderDTO
from marketplace.application.update_status import TransitionOrderStatusUseCase, TransitionStatusDTO
from marketplace.domain.models import Actor, OrderStatus, Product, Role


class FakeProductCatalog(ProductCatalog):
    def __init__(self, products):
        self._products = {p.id: p for p in products}

    async def get_product(self, product_id):
        return self._products.get(product_id)


class FakeUserDirectory(UserDirectory):
    def __init__(self, actors):
        self._actors = {a.id: a for a in actors}

    async def get_actor(self, user_id):
        return self._actors.get(user_id)


class FakeEventPublisher(EventPublisher):
    def __init__(self, fail_on=()):
        self.published = []
        self._fail_on = set(fail_on)

    async def publish(self, event_type, order_id, payload):
        if event_type in self._fail_on:
            return False
        self.published.append((event_type, order_id, payload))
        return True


PRODUCTS = [
    Product(id="p-tv", seller_id="s-1", industry="electronics", approval_status="approved"),
    Product(id="p-radio", seller_id="s-1", industry="electronics", approval_status="approved"),
    Product(id="p-lipstick", seller_id="s-2", industry="beauty", approval_status="approved"),
    Product(id="p-draft", seller_id="s-1", industry="electronics", approval_status="pending"),
    Product(id="p-rejected", seller_id="s-2", industry="beauty", approval_status="rejected"),
]

BUYER = Actor(id="b-1", role=Role.BUYER)
OTHER_BUYER = Actor(id="b-2", role=Role.BUYER)
BANNED_BUYER = Actor(id="b-banned", role=Role.BUYER, is_banned=True)
SELLER = Actor(id="s-1", role=Role.SELLER, industry="electronics")
OTHER_SELLER = Actor(id="s-2", role=Role.SELLER, industry="beauty")
ELECTRONICS_SUB_ADMIN = Actor(id="sa-1", role=Role.SUB_ADMIN, industry="electronics")
BEAUTY_SUB_ADMIN = Actor(id="sa-2", role=Role.SUB_ADMIN, industry="beauty")
ADMIN = Actor(id="a-1", role=Role.ADMIN)

ACTORS = [
    BUYER, OTHER_BUYER, BANNED_BUYER, SELLER, OTHER_SELLER,
    ELECTRONICS_SUB_ADMIN, BEAUTY_SUB_ADMIN, ADMIN,
]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def uow(engine):
    return UnitOfWork(make_session_factory(engine))


@pytest.fixture
def catalog():
    return FakeProductCatalog(PRODUCTS)


@pytest.fixture
def directory():
    return FakeUserDirectory(ACTORS)


@pytest.fixture
def publisher():
    return FakeEventPublisher()


@pytest.fixture
def order_in(uow, catalog):
    """Factory: an order for BUYER on p-tv, moved by the admin to the given status."""

    async def _make(status=OrderStatus.PENDING_APPROVAL, buyer=BUYER, product_id="p-tv", quantity=3):
        order = await CreateOrderUseCase(uow, catalog)(
            buyer,
            CreateOrderDTO(product_id=product_id, quantity=quantity, shipping_address="1 Main St")
        )
        if status != OrderStatus.PENDING_APPROVAL:
            order = await TransitionOrderStatusUseCase(uow)(
                ADMIN, TransitionStatusDTO(order_id=order.id, status=status)
            )
        return order

    return _make
