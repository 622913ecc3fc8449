import logging
from datetime import datetime, timezone
from typing import List, Optional, Union

from storefront.core.errors import (
    CancelTransportError,
    NotCancellableError,
    OrderServiceError,
    QueryError,
)
from storefront.core.order_client import OrderServiceClient
from storefront.schemas.order import Order, RemainingTime, ScheduledOrder

logger = logging.getLogger(__name__)

# Statuses the order service uses to refuse a cancel on a non-pending order
REJECTED_CANCEL_STATUSES = {400, 409, 422}


def remaining_time(scheduled_instant: datetime, now: Optional[datetime] = None) -> RemainingTime:
    """Time left until `scheduled_instant`, floored at zero. Recomputed on every call."""
    if now is None:
        if scheduled_instant.tzinfo is not None:
            now = datetime.now(timezone.utc)
        else:
            now = datetime.now()

    seconds = int((scheduled_instant - now).total_seconds())
    if seconds <= 0:
        return RemainingTime(seconds=0, has_passed=True, label="Order time has passed")

    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    return RemainingTime(seconds=seconds, has_passed=False, label=f"{hours}h {minutes}m remaining")


class OrderQueryService:
    def __init__(self, client: OrderServiceClient):
        self.client = client

    async def list_orders(self) -> List[Order]:
        try:
            return await self.client.list_orders()
        except OrderServiceError as e:
            raise QueryError("Could not load orders", cause=e) from e

    async def list_scheduled_orders(self) -> List[ScheduledOrder]:
        try:
            return await self.client.list_scheduled_orders()
        except OrderServiceError as e:
            raise QueryError("Could not load scheduled orders", cause=e) from e

    async def cancel_order(self, order_number: str):
        """Cancel a pending order. The server decides whether the order is still pending."""
        try:
            await self.client.cancel_order(order_number)
        except OrderServiceError as e:
            if e.status_code in REJECTED_CANCEL_STATUSES:
                raise NotCancellableError(f"Order {order_number} can no longer be cancelled", cause=e) from e
            raise CancelTransportError(f"Failed to cancel order {order_number}", cause=e) from e
        logger.info(f"Order {order_number} cancelled")

    async def cancel_scheduled_order(self, schedule_id: Union[int, str]):
        try:
            await self.client.cancel_scheduled_order(schedule_id)
        except OrderServiceError as e:
            if e.status_code in REJECTED_CANCEL_STATUSES:
                raise NotCancellableError(f"Scheduled order {schedule_id} can no longer be cancelled", cause=e) from e
            raise CancelTransportError(f"Failed to cancel scheduled order {schedule_id}", cause=e) from e
        logger.info(f"Scheduled order {schedule_id} cancelled")


class OrderBook:
    """
    Local snapshots of the customer's orders and scheduled orders.

    Lists only change on refresh or after a successful cancel; a failed
    cancel leaves them exactly as they were.
    """

    def __init__(self, queries: OrderQueryService):
        self.queries = queries
        self.orders: List[Order] = []
        self.scheduled_orders: List[ScheduledOrder] = []

    async def refresh_orders(self) -> List[Order]:
        self.orders = await self.queries.list_orders()
        return self.orders

    async def refresh_scheduled_orders(self) -> List[ScheduledOrder]:
        self.scheduled_orders = await self.queries.list_scheduled_orders()
        return self.scheduled_orders

    async def refresh(self):
        await self.refresh_orders()
        await self.refresh_scheduled_orders()

    def find_order(self, order_number: str) -> Optional[Order]:
        return next((o for o in self.orders if o.order_number == order_number), None)

    async def cancel_order(self, order_number: str):
        known = self.find_order(order_number)
        if known is not None and not known.is_cancellable:
            raise NotCancellableError(f"Order {order_number} is {known.order_status} and cannot be cancelled")

        await self.queries.cancel_order(order_number)
        try:
            await self.refresh_orders()
        except QueryError as e:
            logger.warning(f"Order {order_number} cancelled but list refresh failed: {str(e)}")

    async def cancel_scheduled_order(self, schedule_id: Union[int, str]):
        await self.queries.cancel_scheduled_order(schedule_id)
        self.scheduled_orders = [
            order for order in self.scheduled_orders
            if str(order.schedule_id) != str(schedule_id)
        ]
