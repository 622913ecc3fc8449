import asyncio
import logging
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from storefront.core.config import Settings
from storefront.core.order_client import OrderServiceClient
from storefront.db.session import create_engine, create_session_factory, init_db
from storefront.services.cart_store import CartStore
from storefront.services.order_query import OrderBook, OrderQueryService
from storefront.services.order_submission import OrderSubmissionService
from storefront.services.persistence import CartPersistenceGateway, CartPersistenceQueue, restore_cart

logger = logging.getLogger(__name__)


class StorefrontContext:
    """
    Everything one client process needs, built once at startup and closed at exit.

    Consumers receive the context (or the piece they need) explicitly instead
    of importing shared module-level instances.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        gateway: CartPersistenceGateway,
        persistence: CartPersistenceQueue,
        cart_store: CartStore,
        client: OrderServiceClient,
        submission: OrderSubmissionService,
        queries: OrderQueryService,
        order_book: OrderBook,
    ):
        self.engine = engine
        self.gateway = gateway
        self.persistence = persistence
        self.cart_store = cart_store
        self.client = client
        self.submission = submission
        self.queries = queries
        self.order_book = order_book
        # held while an order submission is in flight
        self.submission_lock = asyncio.Lock()

    @classmethod
    async def create(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "StorefrontContext":
        engine = create_engine(settings.DATABASE_URL)
        storage_ready = True
        try:
            await init_db(engine)
        except SQLAlchemyError as e:
            # unreadable storage file: run with an empty cart, later saves just log
            logger.warning(f"Cart storage unavailable, starting with an empty cart: {str(e)}")
            storage_ready = False

        gateway = CartPersistenceGateway(create_session_factory(engine), settings.CART_STORAGE_KEY)
        persistence = CartPersistenceQueue(gateway)
        cart_store = CartStore(persistence)
        if storage_ready:
            await restore_cart(cart_store, gateway)

        client = OrderServiceClient(
            settings.ORDER_API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        queries = OrderQueryService(client)
        context = cls(
            engine=engine,
            gateway=gateway,
            persistence=persistence,
            cart_store=cart_store,
            client=client,
            submission=OrderSubmissionService(cart_store, client, settings.REJECT_PAST_SCHEDULES),
            queries=queries,
            order_book=OrderBook(queries),
        )
        logger.info(f"Storefront context ready, order service at {settings.ORDER_API_BASE_URL}")
        return context

    async def close(self):
        await self.persistence.flush()
        await self.client.close()
        await self.engine.dispose()
        logger.info("Storefront context closed")
