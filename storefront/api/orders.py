from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import logging

from storefront.api.dependencies import get_context, get_order_book
from storefront.core.context import StorefrontContext
from storefront.core.errors import (
    EmptyCartError,
    NotCancellableError,
    CancelError,
    QueryError,
    ScheduleValidationError,
    SubmissionTransportError,
)
from storefront.schemas.order import Order, ScheduleCreate, ScheduledOrder, ScheduledOrderResponse
from storefront.services.order_query import OrderBook, remaining_time

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


def _claim_submission(context: StorefrontContext):
    # The order service does not deduplicate, so a second tap must be refused here
    if context.submission_lock.locked():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An order is already being submitted"
        )


@router.post("", response_model=Order, status_code=201)
async def create_order(context: StorefrontContext = Depends(get_context)):
    """
    Place an immediate order from cart contents.
    1. Reject an empty cart
    2. Send order to the order service
    3. Remove the ordered items on success, keep the cart on failure
    """
    _claim_submission(context)
    async with context.submission_lock:
        try:
            return await context.submission.submit_immediate()
        except EmptyCartError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except SubmissionTransportError as e:
            raise HTTPException(status_code=502, detail=str(e))


@router.post("/schedules", response_model=ScheduledOrder, status_code=201)
async def create_scheduled_order(
    schedule: ScheduleCreate,
    context: StorefrontContext = Depends(get_context)
):
    """Schedule the cart for a later time given as YYYY-MM-DD HH:mm."""
    _claim_submission(context)
    async with context.submission_lock:
        try:
            return await context.submission.submit_scheduled_text(schedule.scheduled_time)
        except (EmptyCartError, ScheduleValidationError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        except SubmissionTransportError as e:
            raise HTTPException(status_code=502, detail=str(e))


@router.get("", response_model=List[Order])
async def list_orders(order_book: OrderBook = Depends(get_order_book)):
    try:
        return await order_book.refresh_orders()
    except QueryError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/schedules", response_model=List[ScheduledOrderResponse])
async def list_scheduled_orders(order_book: OrderBook = Depends(get_order_book)):
    try:
        scheduled = await order_book.refresh_scheduled_orders()
    except QueryError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return [
        ScheduledOrderResponse(order=order, remaining=remaining_time(order.scheduled_time))
        for order in scheduled
    ]


@router.post("/{order_number}/cancel")
async def cancel_order(order_number: str, order_book: OrderBook = Depends(get_order_book)):
    try:
        await order_book.cancel_order(order_number)
    except NotCancellableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CancelError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "cancelled", "orderNumber": order_number}


@router.delete("/schedules/cancel/{schedule_id}")
async def cancel_scheduled_order(schedule_id: str, order_book: OrderBook = Depends(get_order_book)):
    try:
        await order_book.cancel_scheduled_order(schedule_id)
    except NotCancellableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CancelError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "cancelled", "scheduleId": schedule_id}
