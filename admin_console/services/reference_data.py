from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from admin_console.clients.admin_api import AdminApiClient
from admin_console.schemas.catalog import Client, Product
from admin_console.services.exceptions import ServiceError
from admin_console.services.mock_store import CatalogRepository, get_mock_store

logger = logging.getLogger(__name__)

CLIENTS_PATH = "/api/admin/getAllClients"
PRODUCTS_PATH = "/api/admin/getAllProducts"

RecordT = TypeVar("RecordT", bound=BaseModel)


class ReferenceData:
    """Client and product lookup tables keyed by record identifier."""

    def __init__(self) -> None:
        self.clients: Dict[str, Client] = {}
        self.products: Dict[str, Product] = {}

    def replace_clients(self, clients: List[Client]) -> None:
        self.clients = {client.record_id: client for client in clients}

    def replace_products(self, products: List[Product]) -> None:
        self.products = {product.product_id: product for product in products}


class ReferenceDataLoader:
    """Fetches the client and product catalogs into a :class:`ReferenceData`."""

    def __init__(
        self,
        client: AdminApiClient,
        *,
        repository: CatalogRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().catalog

    async def load(self, reference: ReferenceData) -> None:
        """Refresh both tables; each one is left alone if its own fetch fails."""

        await asyncio.gather(
            self._load_clients(reference),
            self._load_products(reference),
        )

    async def _load_clients(self, reference: ReferenceData) -> None:
        try:
            clients = await self._fetch(CLIENTS_PATH, Client)
        except ServiceError as exc:
            logger.error("Error fetching clients: %s", exc, exc_info=exc.cause or exc)
            return
        except Exception:
            logger.exception("Unexpected error fetching clients")
            return
        reference.replace_clients(clients)
        logger.info("Loaded %s clients", len(clients))

    async def _load_products(self, reference: ReferenceData) -> None:
        try:
            products = await self._fetch(PRODUCTS_PATH, Product)
        except ServiceError as exc:
            logger.error("Error fetching products: %s", exc, exc_info=exc.cause or exc)
            return
        except Exception:
            logger.exception("Unexpected error fetching products")
            return
        reference.replace_products(products)
        logger.info("Loaded %s products", len(products))

    async def _fetch(self, path: str, model: Type[RecordT]) -> List[RecordT]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock catalog repository not configured")
            data: Any = (
                self._repository.clients()
                if path == CLIENTS_PATH
                else self._repository.products()
            )
        else:
            data = await self._client.get(path)

        if not isinstance(data, list):
            raise ServiceError(f"Expected a list from {path}, got {type(data).__name__}")
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as exc:
            raise ServiceError(f"Malformed record in {path}", cause=exc) from exc
