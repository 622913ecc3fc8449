import logging
import secrets
import time
from datetime import datetime
from typing import Optional, Tuple

from storefront.core.errors import EmptyCartError, OrderServiceError, SubmissionTransportError
from storefront.core.order_client import OrderServiceClient
from storefront.schemas.cart import CartLineItem
from storefront.schemas.order import Order, OrderItem, OrderRequest, ScheduledOrder
from storefront.services import cart_model
from storefront.services.cart_store import CartStore
from storefront.services.schedule import validate_schedule_time

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    """Time-based token with a random suffix so two orders in the same millisecond differ."""
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


class OrderSubmissionService:
    """
    Turns the live cart into an order on the remote service.

    Each call makes exactly one request and never retries. On success the
    ordered quantities leave the cart (items added while the request was in
    flight stay); on any failure it is left as it was so the user can retry.
    Callers must not start a second submission while one is in flight.
    """

    def __init__(self, cart_store: CartStore, client: OrderServiceClient, reject_past_schedules: bool = False):
        self.cart_store = cart_store
        self.client = client
        self.reject_past_schedules = reject_past_schedules

    def build_request(self, scheduled_time: Optional[datetime] = None) -> OrderRequest:
        return self._build_request(self.cart_store.items, scheduled_time)

    def _build_request(self, items: Tuple[CartLineItem, ...], scheduled_time: Optional[datetime] = None) -> OrderRequest:
        if not items:
            raise EmptyCartError()

        order_items = [
            OrderItem(
                product_id=item.product_id,
                sku_id=item.sku_id,
                sku_name=item.sku_name,
                product_name=item.product_name,
                quantity=item.quantity,
                price=item.unit_price,
                image_url=item.image_ref,
            )
            for item in items
        ]
        return OrderRequest(
            order_number=generate_order_number(),
            scheduled_time=scheduled_time.replace(second=0, microsecond=0) if scheduled_time else None,
            order_items=order_items,
            total_amount=cart_model.total(items),
        )

    async def submit_immediate(self) -> Order:
        snapshot = self.cart_store.items
        request = self._build_request(snapshot)
        try:
            order = await self.client.create_order(request)
        except OrderServiceError as e:
            logger.error(f"Order {request.order_number} failed, cart kept: {str(e)}")
            raise SubmissionTransportError("Failed to place order, please try again", cause=e) from e

        self.cart_store.remove_ordered(snapshot)
        logger.info(f"Order {order.order_number} placed, ordered items removed from cart")
        return order

    async def submit_scheduled(self, instant: datetime) -> ScheduledOrder:
        snapshot = self.cart_store.items
        request = self._build_request(snapshot, scheduled_time=instant)
        try:
            scheduled = await self.client.create_scheduled_order(request)
        except OrderServiceError as e:
            logger.error(f"Scheduled order {request.order_number} failed, cart kept: {str(e)}")
            raise SubmissionTransportError("Failed to schedule order, please try again", cause=e) from e

        self.cart_store.remove_ordered(snapshot)
        logger.info(f"Order {scheduled.order_number} scheduled for {scheduled.scheduled_time}, ordered items removed from cart")
        return scheduled

    async def submit_scheduled_text(self, text: str) -> ScheduledOrder:
        """Validate free-text input, then schedule. Nothing is sent when the text is malformed."""
        instant = validate_schedule_time(text, reject_past=self.reject_past_schedules)
        return await self.submit_scheduled(instant)
