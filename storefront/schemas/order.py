import enum
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, Field, PlainSerializer


def _money_to_json(value: Decimal):
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimal in memory, JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(_money_to_json, when_used="json")]


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class OrderItem(BaseModel):
    product_id: int = Field(alias="productId")
    sku_id: int = Field(alias="skuId")
    sku_name: str = Field(alias="skuName")
    product_name: str = Field(alias="productName")
    quantity: int = Field(ge=1)
    price: Money
    image_url: str = Field(default="", alias="imageUrl")

    class Config:
        populate_by_name = True
        extra = "ignore"


class OrderRequest(BaseModel):
    order_number: str = Field(alias="orderNumber")
    scheduled_time: Optional[datetime] = Field(default=None, alias="scheduledTime")
    order_items: List[OrderItem] = Field(alias="orderItems")
    total_amount: Money = Field(alias="totalAmount")

    class Config:
        populate_by_name = True

    def to_payload(self) -> dict:
        """Request body as sent to the order service; immediate orders omit scheduledTime."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Order(BaseModel):
    order_number: str = Field(alias="orderNumber")
    # server-defined; anything besides PENDING is terminal for cancellation
    order_status: str = Field(default=OrderStatus.PENDING.value, alias="orderStatus")
    total_amount: Money = Field(alias="totalAmount")
    order_items: List[OrderItem] = Field(default_factory=list, alias="orderItems")

    class Config:
        populate_by_name = True
        extra = "ignore"
        coerce_numbers_to_str = True

    @property
    def is_cancellable(self) -> bool:
        return self.order_status == OrderStatus.PENDING.value


class ScheduledOrder(Order):
    schedule_id: Union[int, str] = Field(alias="scheduleId")
    scheduled_time: datetime = Field(alias="scheduledTime")
    order_status: Optional[str] = Field(default=None, alias="orderStatus")


class RemainingTime(BaseModel):
    seconds: int = Field(ge=0)
    has_passed: bool
    label: str


class ScheduleCreate(BaseModel):
    scheduled_time: str = Field(alias="scheduledTime")

    class Config:
        populate_by_name = True


class ScheduledOrderResponse(BaseModel):
    order: ScheduledOrder
    remaining: RemainingTime
