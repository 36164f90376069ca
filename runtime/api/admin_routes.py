"""HTTP routes for the admin back-office.

Every route except login/verify/logout requires a live session token in
the Authorization header ("Bearer <token>" or the bare token).

Exposes:

- POST /api/admin/login, GET /api/admin/verify, POST /api/admin/logout
- GET  /api/admin/stats | activity | popular-products | orders
- CRUD /api/admin/categories[/{id}]
- CRUD /api/admin/products[/{id}], POST /api/admin/products/{id}/image
- POST /api/admin/cleanup-images, GET /api/admin/check-orphaned-images

Domain exceptions raised here (ValidationFailed, NotFoundError, ...) are
turned into JSON responses by the handlers registered in server.py.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse

from core.auth.passwords import authenticate
from exceptions.exceptions import AuthenticationError
from ..models.api_models import (
    CategoryRequest,
    LoginRequest,
    LoginResponse,
    OrphanScan,
    ProductPage,
)
from ..models.session_models import SessionUser
from ..services.catalog_service import DEFAULT_ADMIN_PAGE_SIZE
from .dependencies import AppContext, get_context, get_token, require_user


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")


# ----------------------------------------------------------------------
# Authentication
# ----------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    request: Request,
    ctx: AppContext = Depends(get_context),
) -> LoginResponse:
    client_key = request.client.host if request.client else "unknown"
    ctx.rate_limiter.hit(client_key)

    user = authenticate(ctx.store.document.users, body.username, body.password)
    if user is None:
        raise AuthenticationError("Invalid credentials")

    token = ctx.sessions.create(
        SessionUser(id=user.id, username=user.username, role=user.role)
    )
    return LoginResponse(token=token)


@router.get("/verify")
async def verify(
    token: Optional[str] = Depends(get_token),
    ctx: AppContext = Depends(get_context),
):
    user = ctx.sessions.validate(token)
    if user is None:
        return JSONResponse(status_code=401, content={"valid": False})
    return {"valid": True, "user": user}


@router.post("/logout")
async def logout(
    token: Optional[str] = Depends(get_token),
    ctx: AppContext = Depends(get_context),
):
    ctx.sessions.revoke(token)
    return {"success": True}


# ----------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------


@router.get("/stats")
async def stats(
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    return ctx.catalog.stats()


@router.get("/activity")
async def activity(
    limit: int = 20,
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    return ctx.catalog.recent_activity(limit)


@router.get("/popular-products")
async def popular_products(
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    return ctx.catalog.popular_products()


@router.get("/orders")
async def orders(
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    return ctx.catalog.list_orders()


# ----------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------


@router.get("/categories")
async def list_categories(
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    return ctx.catalog.list_categories()


@router.post("/categories")
async def create_category(
    body: CategoryRequest,
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    category = await ctx.catalog.create_category(body.name, body.description)
    return {"success": True, "category": category}


@router.put("/categories/{category_id}")
async def update_category(
    category_id: int,
    body: CategoryRequest,
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    category = await ctx.catalog.update_category(category_id, body.name, body.description)
    return {"success": True, "category": category}


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    await ctx.catalog.delete_category(category_id)
    return {"success": True}


# ----------------------------------------------------------------------
# Products
# ----------------------------------------------------------------------


@router.get("/products", response_model=ProductPage)
async def list_products(
    page: int = 1,
    limit: int = DEFAULT_ADMIN_PAGE_SIZE,
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    return ctx.catalog.list_products(page=page, limit=limit, active_only=False)


@router.post("/products")
async def create_product(
    payload: Dict[str, Any] = Body(...),
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    product = await ctx.catalog.create_product(payload)
    return {"success": True, "product": product}


@router.put("/products/{product_id}")
async def update_product(
    product_id: int,
    payload: Dict[str, Any] = Body(...),
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    product = await ctx.catalog.update_product(product_id, payload)
    return {"success": True, "product": product}


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: int,
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    await ctx.catalog.delete_product(product_id)
    return {"success": True}


@router.post("/products/{product_id}/image")
async def upload_product_image(
    product_id: int,
    product_image: UploadFile = File(..., alias="productImage"),
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    data = await product_image.read()
    product = await ctx.catalog.attach_image(
        product_id, product_image.filename, product_image.content_type, data
    )
    return {"success": True, "product": product}


# ----------------------------------------------------------------------
# Upload maintenance
# ----------------------------------------------------------------------


@router.post("/cleanup-images")
async def cleanup_images(
    user: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    report = ctx.gc.collect()
    logger.info(
        "[API] Manual cleanup triggered by %s: deleted=%d",
        user.username,
        report.deleted_count,
    )
    if report.deleted_count > 0:
        message = (
            f"Deleted {report.deleted_count} orphaned image(s) "
            f"out of {report.total_files} file(s)"
        )
    else:
        message = "No orphaned images found"
    return {"success": True, "message": message, "details": report}


@router.get("/check-orphaned-images", response_model=OrphanScan)
async def check_orphaned_images(
    _: SessionUser = Depends(require_user),
    ctx: AppContext = Depends(get_context),
):
    return ctx.gc.scan()
