"""Public storefront routes (no session required).

- GET /api/categories               -> every category
- GET /api/products?page&limit      -> active products, paginated
- GET /uploads/products/{filename}  -> a product image
- GET /healthz                      -> liveness probe
"""

from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from ..models.api_models import ProductPage
from ..models.store_models import Category
from ..services.catalog_service import DEFAULT_PUBLIC_PAGE_SIZE
from .dependencies import AppContext, get_context


router = APIRouter()


@router.get("/api/categories", response_model=List[Category])
async def list_categories(ctx: AppContext = Depends(get_context)):
    return ctx.catalog.list_categories()


@router.get("/api/products", response_model=ProductPage)
async def list_products(
    page: int = 1,
    limit: int = DEFAULT_PUBLIC_PAGE_SIZE,
    ctx: AppContext = Depends(get_context),
):
    return ctx.catalog.list_products(page=page, limit=limit, active_only=True)


@router.get("/uploads/products/{filename}")
async def serve_upload(filename: str, ctx: AppContext = Depends(get_context)):
    return FileResponse(ctx.uploads.path_for(filename))


# --------------------------------------------------------
# Endpoint: GET /healthz
# --------------------------------------------------------
@router.get("/healthz")
async def health_check():
    """
    Simple health check endpoint for uptime monitoring.
    """
    return {"status": "ok"}
