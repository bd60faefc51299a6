"""
Cheez — Backend API
FastAPI server for the snack storefront: catalog, checkout, session auth
and the admin order/inventory dashboard.
"""

from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from cheez import config
from cheez.auth import get_identity
from cheez.database import init_db, query
from cheez.errors import ShopError, store_guard
from cheez.models import Identity
from cheez.routes.orders import (
    handle_get_order, handle_list_all_orders, handle_list_own_orders,
    handle_place_order, handle_update_order_status,
)
from cheez.routes.products import (
    handle_adjust_inventory, handle_list_categories, handle_list_inventory,
    handle_list_products,
)
from cheez.routes.users import handle_login, handle_logout, handle_me

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Cheez API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


async def current_identity(request: Request) -> Optional[Identity]:
    """The identity behind the request's session cookie, if any."""
    with store_guard("Failed to load session"):
        return get_identity(request.cookies.get(config.SESSION_COOKIE))


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    username: str
    password: str


class InventoryRequest(CamelModel):
    quantity: StrictInt


class OrderItemRequest(CamelModel):
    product_id: int
    quantity: StrictInt
    price: Decimal = Field(ge=0)


class OrderRequest(CamelModel):
    name: str = Field(min_length=3)
    phone: str
    address: str = Field(min_length=5)
    instructions: Optional[str] = None
    payment_method: str
    payment_phone: Optional[str] = None
    items: list[OrderItemRequest]
    subtotal: Decimal = Field(ge=0)
    delivery_fee: Decimal = Field(ge=0)
    total: Decimal = Field(ge=0)


class StatusRequest(CamelModel):
    status: str


# ---------------------------------------------------------------------------
# Endpoints — Auth
# ---------------------------------------------------------------------------

@app.post("/api/auth/login")
async def login(req: LoginRequest, request: Request, response: Response):
    previous = request.cookies.get(config.SESSION_COOKIE)
    session_id, user = handle_login(req.model_dump())
    if previous:
        handle_logout(previous)
    response.set_cookie(
        config.SESSION_COOKIE,
        session_id,
        max_age=config.SESSION_TTL_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=config.SESSION_COOKIE_SECURE,
    )
    return user


@app.post("/api/auth/logout")
async def logout(request: Request, response: Response):
    result = handle_logout(request.cookies.get(config.SESSION_COOKIE))
    response.delete_cookie(config.SESSION_COOKIE)
    return result


@app.get("/api/auth/me")
async def me(identity: Optional[Identity] = Depends(current_identity)):
    return handle_me(identity)


# ---------------------------------------------------------------------------
# Endpoints — Catalog & inventory
# ---------------------------------------------------------------------------

@app.get("/api/categories")
async def list_categories():
    return handle_list_categories()


@app.get("/api/products")
async def list_products(category_id: Optional[int] = Query(None, alias="categoryId")):
    return handle_list_products(category_id)


@app.get("/api/products/inventory")
async def list_inventory(identity: Optional[Identity] = Depends(current_identity)):
    return handle_list_inventory(identity)


@app.patch("/api/products/{product_id}/inventory")
async def adjust_inventory(product_id: int, req: InventoryRequest,
                           identity: Optional[Identity] = Depends(current_identity)):
    return handle_adjust_inventory(identity, product_id, req.quantity)


# ---------------------------------------------------------------------------
# Endpoints — Orders
# ---------------------------------------------------------------------------

@app.post("/api/orders", status_code=201)
async def place_order(req: OrderRequest, identity: Optional[Identity] = Depends(current_identity)):
    return handle_place_order(identity, req.model_dump())


@app.get("/api/orders")
async def list_own_orders(identity: Optional[Identity] = Depends(current_identity)):
    return handle_list_own_orders(identity)


@app.get("/api/orders/admin")
async def list_all_orders(identity: Optional[Identity] = Depends(current_identity)):
    return handle_list_all_orders(identity)


@app.get("/api/orders/{order_id}")
async def get_order(order_id: int, identity: Optional[Identity] = Depends(current_identity)):
    return handle_get_order(identity, order_id)


@app.patch("/api/orders/{order_id}")
async def update_order_status(order_id: int, req: StatusRequest,
                              identity: Optional[Identity] = Depends(current_identity)):
    return handle_update_order_status(identity, order_id, req.status)


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------

@app.get("/")
async def root():
    return {"message": "Cheez API is running"}


@app.get("/health")
async def health():
    with store_guard("Database not available"):
        query("SELECT 1")
    return {"status": "ok"}


def main():
    uvicorn.run("cheez.main:app", host=config.HOST, port=config.PORT, reload=config.DEBUG)


if __name__ == "__main__":
    main()
