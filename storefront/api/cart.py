from fastapi import APIRouter, Depends
import logging

from storefront.api.dependencies import get_cart_store
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartLineItem, CartResponse
from storefront.services.cart_store import CartStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cart", tags=["cart"])


def cart_response(store: CartStore) -> CartResponse:
    return CartResponse(
        items=list(store.items),
        total=store.total,
        item_count=store.item_count
    )


@router.get("", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)):
    """Get current shopping cart."""
    return cart_response(store)


@router.post("/add", response_model=CartResponse)
async def add_to_cart(item: CartItemAdd, store: CartStore = Depends(get_cart_store)):
    """Add item to cart, merging with an existing line for the same sku."""
    store.add_item(CartLineItem(**item.model_dump()))
    return cart_response(store)


@router.put("/update", response_model=CartResponse)
async def update_cart_item(item: CartItemUpdate, store: CartStore = Depends(get_cart_store)):
    """Set a sku's quantity, creating the line if needed. Quantity 0 removes it."""
    store.upsert_quantity(CartLineItem(**item.model_dump()), item.quantity)
    return cart_response(store)


@router.post("/increment/{sku_id}", response_model=CartResponse)
async def increment_cart_item(sku_id: int, store: CartStore = Depends(get_cart_store)):
    store.increment(sku_id)
    return cart_response(store)


@router.post("/decrement/{sku_id}", response_model=CartResponse)
async def decrement_cart_item(sku_id: int, store: CartStore = Depends(get_cart_store)):
    store.decrement(sku_id)
    return cart_response(store)


@router.delete("/remove/{sku_id}", response_model=CartResponse)
async def remove_from_cart(sku_id: int, store: CartStore = Depends(get_cart_store)):
    """Remove item from cart."""
    store.remove(sku_id)
    return cart_response(store)


@router.post("/clear", response_model=CartResponse)
async def clear_cart(store: CartStore = Depends(get_cart_store)):
    """Clear entire cart."""
    store.clear()
    return cart_response(store)
