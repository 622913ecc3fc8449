import asyncio
import json
import logging
from typing import Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from storefront.core.errors import StorageError
from storefront.db.models import StorageRecord
from storefront.schemas.cart import CartLineItem
from storefront.services import cart_model
from storefront.services.cart_model import Cart

logger = logging.getLogger(__name__)

_line_items = TypeAdapter(List[CartLineItem])


class CartPersistenceGateway:
    """Saves and loads the cart as one JSON record under a fixed key."""

    def __init__(self, session_factory: async_sessionmaker, storage_key: str = "cart"):
        self.session_factory = session_factory
        self.storage_key = storage_key

    @staticmethod
    def serialize(items: Iterable[CartLineItem]) -> str:
        # Ordered list of {productId, skuId, name, skuName, price, quantity, image}
        return json.dumps([item.model_dump(mode="json", by_alias=True) for item in items])

    @staticmethod
    def deserialize(raw: str) -> Cart:
        return cart_model.normalize(_line_items.validate_python(json.loads(raw)))

    async def save(self, items: Iterable[CartLineItem]):
        """Overwrite the stored cart with `items`."""
        value = self.serialize(items)
        try:
            async with self.session_factory() as session:
                record = await session.get(StorageRecord, self.storage_key)
                if record is None:
                    session.add(StorageRecord(key=self.storage_key, value=value))
                else:
                    record.value = value
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save cart under '{self.storage_key}'", cause=e) from e

    async def load(self) -> Optional[Cart]:
        """
        Read the stored cart.

        Returns None when nothing was stored yet, and also when the stored value
        cannot be decoded; a damaged record must never keep the app from starting.
        """
        try:
            async with self.session_factory() as session:
                record = await session.get(StorageRecord, self.storage_key)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load cart from '{self.storage_key}'", cause=e) from e

        if record is None:
            return None

        try:
            return self.deserialize(record.value)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Stored cart under '{self.storage_key}' is unreadable, starting empty: {str(e)}")
            return None


class CartPersistenceQueue:
    """
    Background writer with at most one save in flight.

    Snapshots submitted while a save is running replace each other; only the
    latest one is written once the running save finishes.
    """

    def __init__(self, gateway: CartPersistenceGateway):
        self.gateway = gateway
        self._pending: Optional[Cart] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, items: Iterable[CartLineItem]):
        self._pending = tuple(items)
        if self.in_flight:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, cart change was not persisted")
            self._pending = None
            return
        self._task = loop.create_task(self._drain())

    async def _drain(self):
        while self._pending is not None:
            snapshot, self._pending = self._pending, None
            try:
                await self.gateway.save(snapshot)
                logger.debug(f"Cart persisted: {len(snapshot)} line items")
            except StorageError as e:
                logger.warning(f"Cart persistence failed, keeping in-memory cart: {str(e.cause or e)}")

    async def flush(self):
        """Wait until every submitted snapshot has been written."""
        while self.in_flight:
            await self._task


async def restore_cart(store, gateway: CartPersistenceGateway):
    """Rehydrate `store` from storage at startup. Any failure leaves the cart empty."""
    try:
        items = await gateway.load()
    except StorageError as e:
        logger.warning(f"Could not restore cart, starting empty: {str(e.cause or e)}")
        return

    if items:
        store.replace_all(items)
        logger.info(f"Restored cart with {len(items)} line items")
