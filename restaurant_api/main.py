"""
FastAPI Application Entry Point

Food Ordering REST API over customers, restaurants, menu items and orders.

Endpoints:
    - POST  /customers                  Create customer
    - GET   /customers/top              Top customers by order count
    - GET   /customers/{id}             Get customer
    - GET   /customers/{id}/orders      Customer's orders with items
    - POST  /restaurants                Create restaurant
    - GET   /restaurants/{id}/menu      Restaurant's (available) menu
    - POST  /restaurants/{id}/menu      Add menu item
    - GET   /restaurants/{id}/revenue   Revenue from completed orders
    - GET   /menu/top-items             Best-selling menu item
    - PATCH /menu/{id}                  Partially update menu item
    - POST  /orders                     Place order
    - GET   /orders/{id}                Get order with items
    - PATCH /orders/{id}/status         Update order status
    - GET   /health                     System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_api.core.config import get_settings, setup_logging
from restaurant_api.core.errors import (
    InvalidInputError,
    NotFoundError,
    RestaurantAPIError,
    StoreUnavailableError,
)
from restaurant_api.database import engine, get_db, init_db
from restaurant_api.schemas import (
    ID_MAX,
    ID_MIN,
    CustomerCreate,
    CustomerResponse,
    ErrorResponse,
    HealthResponse,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
    RestaurantCreate,
    RestaurantResponse,
    RevenueResponse,
    TopCustomerResponse,
)
from restaurant_api.services.pricing import OrderLine, place_order
from restaurant_api.services.store import StoreGateway

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()

    yield

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="REST API for customers, restaurants, menus and orders.",
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

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# =============================================================================
# DEPENDENCIES & HELPERS
# =============================================================================

async def get_gateway(db: AsyncSession = Depends(get_db)) -> StoreGateway:
    """Request-scoped persistence gateway over the shared engine."""
    return StoreGateway(db)


def parse_id(raw: str) -> int:
    """Parse an integer path parameter or fail with 400."""
    try:
        value = int(raw)
    except ValueError:
        raise InvalidInputError()
    if not ID_MIN <= value <= ID_MAX:
        raise InvalidInputError()
    return value


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    gateway: StoreGateway = Depends(get_gateway),
) -> HealthResponse:
    """Verify the store is reachable."""
    db_status = "healthy"
    try:
        await gateway.ping()
    except StoreUnavailableError as e:
        db_status = "unhealthy"
        logger.error(f"Database health check failed: {e.__cause__}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# CUSTOMER ENDPOINTS
# =============================================================================

@app.post(
    "/customers",
    response_model=CustomerResponse,
    responses=ERROR_RESPONSES,
    tags=["Customers"],
)
async def create_customer(
    payload: CustomerCreate,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.create_customer(payload.model_dump(exclude_unset=True))


@app.get(
    "/customers/top",
    response_model=List[TopCustomerResponse],
    tags=["Customers"],
    summary="Top Customers by Order Count",
)
async def top_customers(
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    rows = await gateway.top_customers_by_order_count(limit=settings.top_customers_limit)
    return [TopCustomerResponse.model_validate(row._asdict()) for row in rows]


@app.get(
    "/customers/{customer_id}",
    response_model=CustomerResponse,
    responses=ERROR_RESPONSES,
    tags=["Customers"],
)
async def get_customer(
    customer_id: str,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.get_customer(parse_id(customer_id))


@app.get(
    "/customers/{customer_id}/orders",
    response_model=List[OrderResponse],
    responses=ERROR_RESPONSES,
    tags=["Customers"],
)
async def list_customer_orders(
    customer_id: str,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    """Orders placed by a customer, with their items. Unknown customers have none."""
    return await gateway.list_orders_for_customer(parse_id(customer_id))


# =============================================================================
# RESTAURANT & MENU ENDPOINTS
# =============================================================================

@app.post(
    "/restaurants",
    response_model=RestaurantResponse,
    responses=ERROR_RESPONSES,
    tags=["Restaurants"],
)
async def create_restaurant(
    payload: RestaurantCreate,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.create_restaurant(payload.model_dump(exclude_unset=True))


@app.get(
    "/restaurants/{restaurant_id}/menu",
    response_model=List[MenuItemResponse],
    responses=ERROR_RESPONSES,
    tags=["Menu"],
)
async def get_menu(
    restaurant_id: str,
    available_only: bool = Query(True, alias="availableOnly"),
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.get_menu_for_restaurant(
        parse_id(restaurant_id),
        available_only=available_only,
    )


@app.post(
    "/restaurants/{restaurant_id}/menu",
    response_model=MenuItemResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
)
async def create_menu_item(
    restaurant_id: str,
    payload: MenuItemCreate,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.create_menu_item(
        parse_id(restaurant_id),
        payload.model_dump(exclude_unset=True),
    )


@app.get(
    "/restaurants/{restaurant_id}/revenue",
    response_model=RevenueResponse,
    responses=ERROR_RESPONSES,
    tags=["Analytics"],
)
async def restaurant_revenue(
    restaurant_id: str,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    """Sum of totals over the restaurant's completed orders."""
    revenue = await gateway.sum_completed_revenue(parse_id(restaurant_id))
    return RevenueResponse(revenue=revenue)


@app.get(
    "/menu/top-items",
    response_model=Optional[MenuItemResponse],
    tags=["Analytics"],
)
async def top_selling_item(
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    """Best-selling menu item by total quantity ordered, or null."""
    return await gateway.top_selling_menu_item()


@app.patch(
    "/menu/{menu_item_id}",
    response_model=MenuItemResponse,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
)
async def update_menu_item(
    menu_item_id: str,
    payload: MenuItemUpdate,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.update_menu_item(
        parse_id(menu_item_id),
        payload.model_dump(exclude_unset=True),
    )


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.post(
    "/orders",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    payload: OrderCreate,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    """
    Price and store an order.

    Lines referencing unknown menu items are left out of the stored order
    and its total.
    """
    logger.info(
        f"Placing order for customer #{payload.customer_id} "
        f"at restaurant #{payload.restaurant_id} ({len(payload.items)} line(s))"
    )
    return await place_order(
        gateway,
        customer_id=payload.customer_id,
        restaurant_id=payload.restaurant_id,
        lines=[OrderLine(item.menu_item_id, item.quantity) for item in payload.items],
    )


@app.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 404: {"description": "Order not found"}},
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.get_order(parse_id(order_id), with_body=False)


@app.patch(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    gateway: StoreGateway = Depends(get_gateway),
) -> Any:
    return await gateway.update_order_status(parse_id(order_id), payload.status)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(RestaurantAPIError)
async def api_error_handler(request: Request, exc: RestaurantAPIError) -> Response:
    """Map domain errors to their status code and a small JSON body."""
    if isinstance(exc, NotFoundError) and not exc.with_body:
        return Response(status_code=404)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else None,
        },
    )


# =============================================================================
# SERVER BOOTSTRAP
# =============================================================================

def run() -> None:
    """Start the API server on the configured host and port."""
    uvicorn.run(
        "restaurant_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
