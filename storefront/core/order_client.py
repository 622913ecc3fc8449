import logging
import httpx
from typing import Optional, List, Union

from pydantic import TypeAdapter, ValidationError

from storefront.core.errors import OrderServiceError
from storefront.schemas.order import Order, OrderRequest, ScheduledOrder

logger = logging.getLogger(__name__)

_orders = TypeAdapter(List[Order])
_scheduled_orders = TypeAdapter(List[ScheduledOrder])


class OrderServiceClient:
    """HTTP client for the remote catalog/order service."""

    def __init__(self, base_url: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.client = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self.client

    async def _request(self, method: str, path: str, action: str, json: Optional[dict] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            client = await self._get_client()
            response = await client.request(method, url, json=json)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.error(f"{action} failed with status {e.response.status_code}: {e.response.text}")
            raise OrderServiceError(
                f"Failed to {action}: {e.response.status_code}",
                status_code=e.response.status_code,
                detail=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{action} failed: {str(e)}")
            raise OrderServiceError(f"Failed to {action}: {str(e)}") from e

    @staticmethod
    def _decode(response: httpx.Response, validate, action: str):
        try:
            return validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"{action} returned an unexpected body: {str(e)}")
            raise OrderServiceError(f"Failed to {action}: unexpected response body") from e

    async def create_order(self, order: OrderRequest) -> Order:
        """
        Place an immediate order.

        POST /api/orders
        {
          "orderNumber": "ORD-1738148820000-a1b2c3",
          "orderItems": [{"productId": 1, "skuId": 7, "skuName": "500g", "productName": "Coffee",
                          "quantity": 2, "price": 10, "imageUrl": "..."}],
          "totalAmount": 20
        }
        """
        payload = order.to_payload()
        payload.pop("scheduledTime", None)
        logger.info(f"Creating order {order.order_number}, total {order.total_amount}")
        logger.debug(f"Order payload: {payload}")

        response = await self._request("POST", "/api/orders", "create order", json=payload)
        result = self._decode(response, Order.model_validate, "create order")
        logger.info(f"Order created successfully: {result.order_number}")
        return result

    async def create_scheduled_order(self, order: OrderRequest) -> ScheduledOrder:
        """
        Schedule an order. Same body as create_order plus "scheduledTime": "2025-01-29T11:07:00".

        POST /api/orders/schedules
        """
        if order.scheduled_time is None:
            raise ValueError("Scheduled order requires scheduledTime")
        payload = order.to_payload()
        logger.info(f"Scheduling order {order.order_number} for {payload['scheduledTime']}")
        logger.debug(f"Scheduled order payload: {payload}")

        response = await self._request("POST", "/api/orders/schedules", "schedule order", json=payload)
        result = self._decode(response, ScheduledOrder.model_validate, "schedule order")
        logger.info(f"Order scheduled successfully: {result.order_number} (schedule {result.schedule_id})")
        return result

    async def list_orders(self) -> List[Order]:
        response = await self._request("GET", "/api/orders", "list orders")
        return self._decode(response, _orders.validate_python, "list orders")

    async def list_scheduled_orders(self) -> List[ScheduledOrder]:
        response = await self._request("GET", "/api/orders/schedules", "list scheduled orders")
        return self._decode(response, _scheduled_orders.validate_python, "list scheduled orders")

    async def cancel_order(self, order_number: str):
        logger.info(f"Cancelling order {order_number}")
        await self._request("POST", f"/api/orders/{order_number}/cancel", "cancel order")

    async def cancel_scheduled_order(self, schedule_id: Union[int, str]):
        logger.info(f"Cancelling scheduled order {schedule_id}")
        await self._request("DELETE", f"/api/orders/schedules/cancel/{schedule_id}", "cancel scheduled order")

    async def close(self):
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
