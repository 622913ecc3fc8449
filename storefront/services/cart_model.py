"""
Cart rules as pure functions.

A cart is an immutable tuple of CartLineItem in display order. Every function
returns a new tuple and never touches its input. At most one line item exists
per sku_id and stored items always have quantity >= 1.
"""
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from storefront.schemas.cart import CartLineItem

Cart = Tuple[CartLineItem, ...]

EMPTY_CART: Cart = ()


def find(cart: Cart, sku_id: int) -> Optional[CartLineItem]:
    return next((item for item in cart if item.sku_id == sku_id), None)


def merge(cart: Cart, incoming: CartLineItem) -> Cart:
    """Add incoming to the cart, summing quantities when the sku is already present."""
    existing = find(cart, incoming.sku_id)
    if existing is None:
        if incoming.quantity == 0:
            return cart
        return cart + (incoming,)

    return tuple(
        item.model_copy(update={"quantity": item.quantity + incoming.quantity})
        if item.sku_id == incoming.sku_id else item
        for item in cart
    )


def remove(cart: Cart, sku_id: int) -> Cart:
    return tuple(item for item in cart if item.sku_id != sku_id)


def set_quantity(cart: Cart, sku_id: int, quantity: int) -> Cart:
    """
    Replace the quantity of an existing line item.

    Zero removes the item. A positive quantity for a sku that is not in the
    cart leaves the cart unchanged; use upsert_quantity to create it.
    """
    if quantity < 0:
        raise ValueError(f"Quantity cannot be negative: {quantity}")
    if quantity == 0:
        return remove(cart, sku_id)
    return tuple(
        item.model_copy(update={"quantity": quantity}) if item.sku_id == sku_id else item
        for item in cart
    )


def upsert_quantity(cart: Cart, item: CartLineItem, quantity: int) -> Cart:
    """Create or update the line item for item.sku_id with exactly `quantity` units."""
    if quantity < 0:
        raise ValueError(f"Quantity cannot be negative: {quantity}")
    if find(cart, item.sku_id) is None:
        if quantity == 0:
            return cart
        return cart + (item.model_copy(update={"quantity": quantity}),)
    return set_quantity(cart, item.sku_id, quantity)


def increment(cart: Cart, sku_id: int) -> Cart:
    existing = find(cart, sku_id)
    if existing is None:
        return cart
    return set_quantity(cart, sku_id, existing.quantity + 1)


def decrement(cart: Cart, sku_id: int) -> Cart:
    existing = find(cart, sku_id)
    if existing is None:
        return cart
    return set_quantity(cart, sku_id, max(existing.quantity - 1, 0))


def subtract(cart: Cart, ordered: Iterable[CartLineItem]) -> Cart:
    """Take the ordered quantities out of the cart; lines that reach zero are removed."""
    for placed in ordered:
        existing = find(cart, placed.sku_id)
        if existing is not None:
            cart = set_quantity(cart, placed.sku_id, max(existing.quantity - placed.quantity, 0))
    return cart


def total(cart: Iterable[CartLineItem]) -> Decimal:
    # Decimal keeps integer-cent prices exact no matter how many operations ran
    return sum((item.unit_price * item.quantity for item in cart), Decimal("0"))


def normalize(items: Iterable[CartLineItem]) -> Cart:
    """Fold an arbitrary item sequence into a valid cart (one entry per sku, no zero quantities)."""
    cart: Cart = EMPTY_CART
    for item in items:
        cart = merge(cart, item)
    return cart
