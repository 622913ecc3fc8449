from fastapi import Depends, HTTPException, Request, status

from storefront.core.context import StorefrontContext
from storefront.services.cart_store import CartStore
from storefront.services.order_query import OrderBook
from storefront.services.order_submission import OrderSubmissionService


def get_context(request: Request) -> StorefrontContext:
    """Dependency returning the process context created at startup."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shop is starting up"
        )
    return context


def get_cart_store(context: StorefrontContext = Depends(get_context)) -> CartStore:
    return context.cart_store


def get_submission_service(context: StorefrontContext = Depends(get_context)) -> OrderSubmissionService:
    return context.submission


def get_order_book(context: StorefrontContext = Depends(get_context)) -> OrderBook:
    return context.order_book
