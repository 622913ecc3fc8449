import json
import pytest
from decimal import Decimal
from sqlalchemy.exc import OperationalError

from storefront.core.errors import StorageError
from storefront.db.models import StorageRecord
from storefront.services.cart_store import CartStore
from storefront.services.persistence import CartPersistenceGateway, CartPersistenceQueue, restore_cart

from conftest import make_item


class RecordingGateway:
    def __init__(self, fail: bool = False):
        self.saved = []
        self.fail = fail

    async def save(self, items):
        self.saved.append(tuple(items))
        if self.fail:
            raise StorageError("disk full")


@pytest.mark.asyncio
async def test_load_without_record_returns_none(gateway):
    assert await gateway.load() is None


@pytest.mark.asyncio
async def test_save_then_load_preserves_items_and_order(gateway):
    cart = (
        make_item(sku_id=3, price="19.99", quantity=2),
        make_item(sku_id=1, price="0.05", quantity=7),
        make_item(sku_id=2, price="5", quantity=1),
    )

    await gateway.save(cart)
    loaded = await gateway.load()

    assert loaded == cart
    assert [item.sku_id for item in loaded] == [3, 1, 2]


@pytest.mark.asyncio
async def test_save_overwrites_previous_value(gateway):
    await gateway.save([make_item(sku_id=1)])
    await gateway.save([make_item(sku_id=2, quantity=4)])

    loaded = await gateway.load()

    assert [(item.sku_id, item.quantity) for item in loaded] == [(2, 4)]


@pytest.mark.asyncio
async def test_stored_format_uses_record_field_names(gateway, session_factory):
    await gateway.save([make_item(sku_id=9, price="2.50", quantity=3, product_id=5)])

    async with session_factory() as session:
        record = await session.get(StorageRecord, "cart")

    assert json.loads(record.value) == [{
        "productId": 5,
        "skuId": 9,
        "name": "Product 5",
        "skuName": "Sku 9",
        "price": "2.50",
        "quantity": 3,
        "image": "https://cdn.example.com/9.png",
    }]


@pytest.mark.asyncio
async def test_legacy_numeric_prices_load(gateway, session_factory):
    async with session_factory() as session:
        session.add(StorageRecord(key="cart", value=json.dumps([
            {"productId": 1, "skuId": 2, "name": "Tea", "skuName": "Green", "price": 4, "quantity": 2, "image": ""}
        ])))
        await session.commit()

    loaded = await gateway.load()

    assert loaded[0].unit_price == Decimal("4")
    assert loaded[0].quantity == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["not json", "{\"skuId\": 1}", "[{\"skuId\": \"x\"}]"])
async def test_corrupt_value_fails_open(gateway, session_factory, raw):
    async with session_factory() as session:
        session.add(StorageRecord(key="cart", value=raw))
        await session.commit()

    assert await gateway.load() is None


@pytest.mark.asyncio
async def test_database_failure_raises_storage_error(engine, session_factory):
    gateway = CartPersistenceGateway(session_factory, storage_key="cart")
    async with engine.begin() as conn:
        await conn.run_sync(StorageRecord.__table__.drop)

    with pytest.raises(StorageError) as exc_info:
        await gateway.save([make_item()])
    assert isinstance(exc_info.value.cause, OperationalError)

    with pytest.raises(StorageError):
        await gateway.load()


@pytest.mark.asyncio
async def test_queue_coalesces_to_latest_snapshot():
    gateway = RecordingGateway()
    queue = CartPersistenceQueue(gateway)

    queue.submit([make_item(sku_id=1)])
    queue.submit([make_item(sku_id=2)])
    queue.submit([make_item(sku_id=3)])
    await queue.flush()

    # all three land before the writer task runs, so only the latest is written
    assert [[item.sku_id for item in saved] for saved in gateway.saved] == [[3]]


@pytest.mark.asyncio
async def test_queue_writes_again_after_in_flight_save():
    gateway = RecordingGateway()
    queue = CartPersistenceQueue(gateway)

    queue.submit([make_item(sku_id=1)])
    await queue.flush()
    queue.submit([make_item(sku_id=2)])
    await queue.flush()

    assert [[item.sku_id for item in saved] for saved in gateway.saved] == [[1], [2]]


@pytest.mark.asyncio
async def test_save_failure_keeps_in_memory_cart():
    gateway = RecordingGateway(fail=True)
    store = CartStore(CartPersistenceQueue(gateway))

    store.add_item(make_item(sku_id=1, quantity=2))
    await store.persistence.flush()

    assert len(gateway.saved) == 1
    assert store.get(1).quantity == 2


def test_submit_without_event_loop_does_not_raise():
    store = CartStore(CartPersistenceQueue(RecordingGateway()))

    store.add_item(make_item(sku_id=1))

    assert store.get(1) is not None


@pytest.mark.asyncio
async def test_restore_cart_populates_store(gateway):
    await gateway.save([make_item(sku_id=1, quantity=2), make_item(sku_id=2)])
    store = CartStore()

    await restore_cart(store, gateway)

    assert [(item.sku_id, item.quantity) for item in store.items] == [(1, 2), (2, 1)]


@pytest.mark.asyncio
async def test_restore_cart_with_broken_storage_starts_empty(engine, gateway):
    async with engine.begin() as conn:
        await conn.run_sync(StorageRecord.__table__.drop)
    store = CartStore()

    await restore_cart(store, gateway)

    assert store.is_empty
