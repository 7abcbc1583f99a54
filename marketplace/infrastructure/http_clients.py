import httpx
import logging
from typing import Optional

from marketplace.domain.models import Actor, Product, Role
from marketplace.domain.exceptions import CatalogServiceError, UserDirectoryError
from marketplace.application.interfaces import ProductCatalog, UserDirectory

logger = logging.getLogger(__name__)


class HTTPProductCatalogClient(ProductCatalog):
    def __init__(self, base_url: str, api_token: str, timeout: float = 10.0, transport=None):
        self._base_url = base_url
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport

    async def get_product(self, product_id: str) -> Optional[Product]:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self._base_url}/api/products/{product_id}",
                    headers={"X-API-Key": self._api_token},
                    timeout=self._timeout
                )
        except httpx.RequestError as e:
            logger.error(f"Product catalog connection error: {e}")
            raise CatalogServiceError(f"Product catalog unavailable: {str(e)}")

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.error(f"Product catalog returned {response.status_code} for {product_id}")
            raise CatalogServiceError(f"Product catalog error: {response.status_code}")

        try:
            data = response.json()
            # the catalog stores the industry tag as "category"
            return Product(
                id=data["id"],
                seller_id=data["seller_id"],
                industry=data.get("industry") or data.get("category"),
                approval_status=data["status"]
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Unreadable product catalog response for {product_id}: {e}")
            raise CatalogServiceError(f"Product catalog returned an invalid product: {str(e)}")


class HTTPUserDirectoryClient(UserDirectory):
    def __init__(self, base_url: str, api_token: str, timeout: float = 10.0, transport=None):
        self._base_url = base_url
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport

    async def get_actor(self, user_id: str) -> Optional[Actor]:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self._base_url}/api/users/{user_id}",
                    headers={"X-API-Key": self._api_token},
                    timeout=self._timeout
                )
        except httpx.RequestError as e:
            logger.error(f"User directory connection error: {e}")
            raise UserDirectoryError(f"User directory unavailable: {str(e)}")

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.error(f"User directory returned {response.status_code} for {user_id}")
            raise UserDirectoryError(f"User directory error: {response.status_code}")

        try:
            data = response.json()
            return Actor(
                id=data["id"],
                role=Role(data["role"]),
                industry=data.get("industry"),
                is_banned=bool(data.get("is_banned", False))
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # JSONDecodeError, an unknown role and pydantic validation errors are all ValueErrors
            logger.error(f"Unreadable user directory response for {user_id}: {e}")
            raise UserDirectoryError(f"User directory returned an invalid user: {str(e)}")
