import logging
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from storefront.schemas.cart import CartLineItem
from storefront.services import cart_model
from storefront.services.cart_model import Cart
from storefront.services.persistence import CartPersistenceQueue

logger = logging.getLogger(__name__)

Subscriber = Callable[[Cart], None]


class CartStore:
    """
    Observable holder of the live cart.

    One writer, any number of readers. Mutations apply the cart_model rules,
    notify subscribers synchronously and then hand the new snapshot to the
    persistence queue. They never raise for domain reasons.
    """

    def __init__(self, persistence: Optional[CartPersistenceQueue] = None):
        self._items: Cart = cart_model.EMPTY_CART
        self._subscribers: List[Subscriber] = []
        self.persistence = persistence

    @property
    def items(self) -> Cart:
        return self._items

    @property
    def total(self) -> Decimal:
        return cart_model.total(self._items)

    @property
    def item_count(self) -> int:
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, sku_id: int) -> Optional[CartLineItem]:
        return cart_model.find(self._items, sku_id)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback`; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def add_item(self, item: CartLineItem):
        if item.quantity < 1 and self.get(item.sku_id) is None:
            logger.warning(f"Rejected add of sku {item.sku_id}: quantity must be at least 1")
            return
        if self._commit(cart_model.merge(self._items, item)):
            logger.info(f"Added to cart: sku_id={item.sku_id}, quantity={item.quantity}")

    def update_quantity(self, sku_id: int, quantity: int):
        if quantity < 0:
            logger.warning(f"Ignored negative quantity for sku {sku_id}: {quantity}")
            return
        if quantity > 0 and self.get(sku_id) is None:
            logger.warning(f"Ignored quantity update for sku {sku_id}: not in cart")
            return
        if self._commit(cart_model.set_quantity(self._items, sku_id, quantity)):
            logger.info(f"Updated cart item: sku_id={sku_id}, quantity={quantity}")

    def upsert_quantity(self, item: CartLineItem, quantity: int):
        if quantity < 0:
            logger.warning(f"Ignored negative quantity for sku {item.sku_id}: {quantity}")
            return
        if self._commit(cart_model.upsert_quantity(self._items, item, quantity)):
            logger.info(f"Set cart item: sku_id={item.sku_id}, quantity={quantity}")

    def increment(self, sku_id: int):
        self._commit(cart_model.increment(self._items, sku_id))

    def decrement(self, sku_id: int):
        self._commit(cart_model.decrement(self._items, sku_id))

    def remove(self, sku_id: int):
        if self._commit(cart_model.remove(self._items, sku_id)):
            logger.info(f"Removed from cart: sku_id={sku_id}")

    def clear(self):
        if self._commit(cart_model.EMPTY_CART):
            logger.info("Cart cleared")

    def remove_ordered(self, ordered: Iterable[CartLineItem]):
        """Drop the quantities of a placed order, keeping anything added since it was built."""
        if self._commit(cart_model.subtract(self._items, ordered)):
            logger.info(f"Removed ordered items, {self.item_count} line items left")

    def replace_all(self, items: Iterable[CartLineItem]):
        """Swap in a whole cart. Used when rehydrating from storage."""
        self._commit(cart_model.normalize(items))

    def _commit(self, new_items: Cart) -> bool:
        if new_items == self._items:
            return False
        self._items = new_items
        for callback in list(self._subscribers):
            try:
                callback(new_items)
            except Exception:
                logger.exception("Cart subscriber failed")
        if self.persistence is not None:
            self.persistence.submit(new_items)
        return True
