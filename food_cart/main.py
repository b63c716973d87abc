"""
FastAPI Application Entry Point

Food Cart Service - Hybrid Architecture
Supports both Mock services (development) and Real integrations (production).

Endpoints:
    - GET /api/cart: Cart snapshot
    - POST /api/cart/items: Add a product
    - POST /api/cart/items/{line_key}/increase|decrease: Change quantity
    - DELETE /api/cart/items/{line_key}: Remove a line
    - DELETE /api/cart: Clear the cart
    - POST /api/checkout/quote: Price the cart
    - POST /api/checkout: Place the order
    - GET /api/orders/{order_id}: Order status stepper
    - POST /api/orders/{order_id}/reorder: Put a past order back in the cart
    - GET /health: System health check

One CartEngine is created per process in the lifespan handler and injected
into routes with Depends.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from food_cart.core.config import Settings, get_settings, setup_logging
from food_cart.exceptions import (
    BackendError,
    ChannelError,
    CheckoutError,
    FoodCartError,
    InvalidProductError,
    InvalidQuantityError,
    LineItemNotFoundError,
    OrderNotFoundError,
    VoucherNotFoundError,
)
from food_cart.schemas import (
    AddToCartRequest,
    CartSnapshot,
    CheckoutQuote,
    CheckoutRequest,
    CheckoutResponse,
    ErrorResponse,
    HealthResponse,
    OrderStatusResponse,
    ReorderResponse,
)
from food_cart.services.backend import get_backend_client
from food_cart.services.backend.base import BaseBackendClient
from food_cart.services.cart import CartEngine
from food_cart.services.checkout import CheckoutOrchestrator
from food_cart.services.orders import fetch_order, order_status, reorder
from food_cart.services.realtime import get_order_channel
from food_cart.services.realtime.base import BaseOrderChannel
from food_cart.services.storage import get_storage_service
from food_cart.services.storage.base import BaseKeyValueStore

setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# ERROR MAPPING
# =============================================================================

STATUS_CODES: dict[type[FoodCartError], int] = {
    InvalidProductError: 422,
    InvalidQuantityError: 422,
    LineItemNotFoundError: 404,
    OrderNotFoundError: 404,
    VoucherNotFoundError: 404,
    CheckoutError: 400,
    BackendError: 502,
    ChannelError: 502,
}


def status_code_for(exc: FoodCartError) -> int:
    """Most specific mapped status for ``exc`` (500 when nothing matches)."""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BaseKeyValueStore] = None,
    backend: Optional[BaseBackendClient] = None,
    channel: Optional[BaseOrderChannel] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Collaborators default to the configured factories; tests pass their own.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Merge policy: {settings.cart_merge_policy.value}")
        logger.info("=" * 60)

        app_store = store or get_storage_service()
        app_backend = backend or get_backend_client()
        app_channel = channel or get_order_channel()

        cart = CartEngine.from_settings(app_store, settings)
        await cart.load()

        app.state.store = app_store
        app.state.backend = app_backend
        app.state.channel = app_channel
        app.state.cart = cart
        app.state.checkout = CheckoutOrchestrator(
            cart, app_backend, app_channel, shipping_fee=settings.shipping_fee
        )

        logger.info(f"✅ Storage: {app_store.provider_name}")
        logger.info(f"✅ Backend: {app_backend.provider_name}")
        logger.info(f"✅ Order channel: {app_channel.provider_name}")

        if settings.use_real_services:
            problems = settings.validate_production_config()
            if problems:
                logger.warning(f"⚠️ Configuration problems: {problems}")

        yield

        logger.info("Shutting down...")
        await cart.close()
        await app_channel.close()
        await app_backend.close()
        await app_store.close()
        logger.info("✅ Cleanup complete")

    app = FastAPI(
        title=settings.app_name,
        description="Persisted shopping cart, checkout and order tracking for a food-ordering app.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FoodCartError)
    async def food_cart_exception_handler(request: Request, exc: FoodCartError) -> JSONResponse:
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{exc.error_code}: {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=exc.error_code, detail=exc.message).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal Server Error",
                "detail": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    app.include_router(router_for(settings))
    return app


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_cart(request: Request) -> CartEngine:
    return request.app.state.cart


def get_checkout(request: Request) -> CheckoutOrchestrator:
    return request.app.state.checkout


def get_backend(request: Request) -> BaseBackendClient:
    return request.app.state.backend


# =============================================================================
# ROUTES
# =============================================================================

def router_for(settings: Settings) -> APIRouter:
    router = APIRouter()
    errors = {
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    }

    # -------------------------------------------------------------------------
    # ROOT & HEALTH
    # -------------------------------------------------------------------------

    @router.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """API root with navigation links."""
        return {
            "message": f"🛒 Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "health": "/health",
        }

    @router.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> HealthResponse:
        """Verify all collaborators are operational."""
        state = request.app.state
        storage = "healthy" if await state.store.health_check() else "unhealthy"
        backend = "healthy" if await state.backend.health_check() else "unhealthy"
        order_channel = "healthy" if await state.channel.health_check() else "unhealthy"

        overall = "operational" if all(
            s == "healthy" for s in (storage, backend, order_channel)
        ) else "degraded"

        cart: CartEngine = state.cart
        return HealthResponse(
            status=overall,
            storage=storage,
            backend=backend,
            order_channel=order_channel,
            cart_loaded=cart.loaded,
            pending_writes=cart.pending_writes,
            failed_writes=cart.failed_writes,
            timestamp=datetime.now(),
        )

    # -------------------------------------------------------------------------
    # CART
    # -------------------------------------------------------------------------

    @router.get("/api/cart", response_model=CartSnapshot, tags=["Cart"])
    async def read_cart(cart: CartEngine = Depends(get_cart)) -> CartSnapshot:
        return cart.snapshot()

    @router.post(
        "/api/cart/items",
        response_model=CartSnapshot,
        responses=errors,
        tags=["Cart"],
        summary="Add a product to the cart",
    )
    async def add_item(
        body: AddToCartRequest,
        cart: CartEngine = Depends(get_cart),
    ) -> CartSnapshot:
        cart.add_to_cart(body.product, body.quantity)
        return cart.snapshot()

    @router.post(
        "/api/cart/items/{line_key}/increase",
        response_model=CartSnapshot,
        responses=errors,
        tags=["Cart"],
    )
    async def increase_item(line_key: str, cart: CartEngine = Depends(get_cart)) -> CartSnapshot:
        if cart.increase_quantity(line_key) is None:
            raise LineItemNotFoundError(line_key)
        return cart.snapshot()

    @router.post(
        "/api/cart/items/{line_key}/decrease",
        response_model=CartSnapshot,
        responses=errors,
        tags=["Cart"],
    )
    async def decrease_item(line_key: str, cart: CartEngine = Depends(get_cart)) -> CartSnapshot:
        if cart.decrease_quantity(line_key) is None:
            raise LineItemNotFoundError(line_key)
        return cart.snapshot()

    @router.delete(
        "/api/cart/items/{line_key}",
        response_model=CartSnapshot,
        responses=errors,
        tags=["Cart"],
    )
    async def remove_item(line_key: str, cart: CartEngine = Depends(get_cart)) -> CartSnapshot:
        if not cart.remove_from_cart(line_key):
            raise LineItemNotFoundError(line_key)
        return cart.snapshot()

    @router.delete("/api/cart", response_model=CartSnapshot, tags=["Cart"])
    async def clear_cart(cart: CartEngine = Depends(get_cart)) -> CartSnapshot:
        cart.clear_cart()
        return cart.snapshot()

    # -------------------------------------------------------------------------
    # CHECKOUT
    # -------------------------------------------------------------------------

    @router.post(
        "/api/checkout/quote",
        response_model=CheckoutQuote,
        responses=errors,
        tags=["Checkout"],
    )
    async def checkout_quote(
        body: CheckoutRequest,
        checkout: CheckoutOrchestrator = Depends(get_checkout),
    ) -> CheckoutQuote:
        profile = await checkout.resolve_profile(body.token)
        return await checkout.prepare(body.voucher_code, body.points, profile)

    @router.post(
        "/api/checkout",
        response_model=CheckoutResponse,
        responses=errors,
        tags=["Checkout"],
        summary="Place the order",
    )
    async def place_order(
        body: CheckoutRequest,
        checkout: CheckoutOrchestrator = Depends(get_checkout),
    ) -> CheckoutResponse:
        profile = await checkout.resolve_profile(body.token)
        result, quote = await checkout.submit(
            body.contact,
            voucher_code=body.voucher_code,
            points=body.points,
            profile=profile,
            note=body.note,
        )
        return CheckoutResponse(
            success=True,
            message="Order placed successfully!",
            order_id=result.order_id,
            quote=quote,
        )

    # -------------------------------------------------------------------------
    # ORDERS
    # -------------------------------------------------------------------------

    @router.get(
        "/api/orders/{order_id}",
        response_model=OrderStatusResponse,
        responses=errors,
        tags=["Orders"],
    )
    async def get_order(
        order_id: str,
        backend: BaseBackendClient = Depends(get_backend),
    ) -> OrderStatusResponse:
        order = await fetch_order(backend, order_id)
        return order_status(order)

    @router.post(
        "/api/orders/{order_id}/reorder",
        response_model=ReorderResponse,
        responses=errors,
        tags=["Orders"],
    )
    async def reorder_order(
        order_id: str,
        backend: BaseBackendClient = Depends(get_backend),
        cart: CartEngine = Depends(get_cart),
    ) -> ReorderResponse:
        order = await fetch_order(backend, order_id)
        added = reorder(cart, order)
        return ReorderResponse(
            success=True,
            message=f"Added {added} item(s) to the cart",
            lines_added=added,
            cart=cart.snapshot(),
        )

    return router


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "food_cart.main:app",
        host=get_settings().api_host,
        port=get_settings().api_port,
    )
