from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List

from storefront.schemas.order import Money


class CartLineItem(BaseModel):
    """One sku's entry in the cart. Aliases match the stored record format."""

    product_id: int = Field(alias="productId")
    sku_id: int = Field(alias="skuId")
    product_name: str = Field(alias="name")
    sku_name: str = Field(alias="skuName")
    unit_price: Decimal = Field(alias="price", ge=0)
    quantity: int = Field(ge=0)
    image_ref: str = Field(default="", alias="image")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class CartItemAdd(CartLineItem):
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(CartLineItem):
    quantity: int = Field(ge=0)


class CartResponse(BaseModel):
    items: List[CartLineItem]
    total: Money
    item_count: int
