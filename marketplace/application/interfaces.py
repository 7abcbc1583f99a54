from abc import ABC, abstractmethod
from typing import Optional, List
from marketplace.domain.models import Actor, Order, OrderFilters, OrderStatus, Product
from marketplace.domain.visibility import VisibilityScope


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_visible(self, order_id: str, scope: VisibilityScope) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_all(self, scope: VisibilityScope, filters: OrderFilters) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def update_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        status: OrderStatus,
        changes: dict
    ) -> Optional[Order]:
        """Compare-and-swap: applies only while the order is still in expected_status.

        Returns the updated order, or None when another writer got there first.
        """
        pass


class OutboxRepository(ABC):
    @abstractmethod
    async def create(self, event_type: str, event_data: dict, order_id: str) -> str:
        pass

    @abstractmethod
    async def get_pending(self, limit: int = 10) -> List[dict]:
        pass

    @abstractmethod
    async def mark_as_published(self, event_id: str) -> None:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @property
    @abstractmethod
    def outbox(self) -> OutboxRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class ProductCatalog(ABC):
    @abstractmethod
    async def get_product(self, product_id: str) -> Optional[Product]:
        pass


class UserDirectory(ABC):
    @abstractmethod
    async def get_actor(self, user_id: str) -> Optional[Actor]:
        pass


class EventPublisher(ABC):
    @abstractmethod
    async def publish(self, event_type: str, order_id: str, payload: dict) -> bool:
        pass
