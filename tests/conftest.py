import httpx
import pytest
from decimal import Decimal

from storefront.core.order_client import OrderServiceClient
from storefront.db.session import create_engine, create_session_factory, init_db
from storefront.schemas.cart import CartLineItem
from storefront.services.persistence import CartPersistenceGateway


ORDER_SERVICE_URL = "http://orders.test"


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path}/storefront.db"


@pytest.fixture
async def engine(database_url):
    engine = create_engine(database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def gateway(session_factory):
    return CartPersistenceGateway(session_factory, storage_key="cart")


class FakeOrderService:
    """Stands in for the remote order service behind httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def respond(self, method: str, path: str, status_code: int = 200, json=None):
        self.routes[(method, path)] = (status_code, json)

    def refuse(self, method: str, path: str):
        self.routes[(method, path)] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        route = self.routes[key]
        if route is None:
            raise httpx.ConnectError("Connection refused", request=request)
        status_code, body = route
        return httpx.Response(status_code, json=body)


@pytest.fixture
def order_service():
    return FakeOrderService()


@pytest.fixture
def transport(order_service):
    return httpx.MockTransport(order_service.handler)


@pytest.fixture
async def order_client(transport):
    client = OrderServiceClient(ORDER_SERVICE_URL, timeout=5.0, transport=transport)
    yield client
    await client.close()


def make_item(sku_id: int = 1, price: str = "10", quantity: int = 1, product_id: int = 100) -> CartLineItem:
    return CartLineItem(
        product_id=product_id,
        sku_id=sku_id,
        product_name=f"Product {product_id}",
        sku_name=f"Sku {sku_id}",
        unit_price=Decimal(price),
        quantity=quantity,
        image_ref=f"https://cdn.example.com/{sku_id}.png",
    )


def order_json(order_number: str = "ORD-1", status: str = "PENDING", total=25, items=None) -> dict:
    return {
        "orderNumber": order_number,
        "orderStatus": status,
        "totalAmount": total,
        "orderItems": items or [],
    }


def scheduled_order_json(schedule_id=7, order_number: str = "ORD-2", scheduled_time: str = "2025-01-29T11:07:00", total=25) -> dict:
    return {
        "scheduleId": schedule_id,
        "orderNumber": order_number,
        "scheduledTime": scheduled_time,
        "totalAmount": total,
        "orderItems": [],
    }
