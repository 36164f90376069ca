"""CatalogService implementation.

Responsible for:
- category and product CRUD over the in-memory store document
- product image attachment (through the UploadStore)
- the admin dashboard read models (stats, activity, popular products)

Every mutating operation follows the same order:
- validate (raise ValidationFailed / NotFoundError, nothing touched)
- mutate the in-memory document
- append an activity log entry
- await DocumentStore.save()

Because the event loop runs one handler at a time between awaits, the
validate + mutate steps cannot interleave with another request; only the
saves overlap, and the store serializes those.
"""

import logging
import math
from typing import Any, Dict, List, Optional

from core.catalog.validators import (
    featured_cap_errors,
    sanitize_input,
    validate_category_name,
    validate_product,
)
from exceptions.exceptions import CategoryInUseError, NotFoundError, ValidationFailed
from ..models.api_models import Pagination, PopularProduct, ProductPage
from ..models.store_models import (
    ActivityEntry,
    Category,
    Product,
    ProductStatus,
    Stats,
    StoreDocument,
    utc_now_iso,
)
from ..store.document_store import DocumentStore, next_id
from ..store.log_store import log_activity, recent_activity
from ..store.upload_store import UploadStore, public_path


logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_PAGE_SIZE = 12
DEFAULT_ADMIN_PAGE_SIZE = 20


class CatalogService:
    """Catalog operations for the admin back-office and the storefront.

    Parameters
    ----------
    store:
        DocumentStore holding the catalog; mutated in place and saved.
    uploads:
        UploadStore used to write and delete product images.
    """

    def __init__(self, store: DocumentStore, uploads: UploadStore) -> None:
        self.store = store
        self.uploads = uploads

    @property
    def document(self) -> StoreDocument:
        return self.store.document

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> List[Category]:
        return list(self.document.categories)

    def _category_index(self, category_id: int) -> int:
        for index, category in enumerate(self.document.categories):
            if category.id == category_id:
                return index
        raise NotFoundError("category", category_id)

    async def create_category(self, name: Any, description: Optional[str] = None) -> Category:
        document = self.document
        cleaned = validate_category_name(name, document.categories)

        category = Category(
            id=next_id(document.categories),
            name=cleaned,
            description=sanitize_input((description or "").strip()),
        )
        document.categories.append(category)
        log_activity(document, "Category added", category=category.name)

        await self.store.save()
        logger.info("[CATALOG] Category created: id=%d name=%s", category.id, category.name)
        return category

    async def update_category(
        self, category_id: int, name: Any, description: Optional[str] = None
    ) -> Category:
        document = self.document
        index = self._category_index(category_id)
        cleaned = validate_category_name(name, document.categories, exclude_id=category_id)

        updated = document.categories[index].model_copy(
            update={
                "name": cleaned,
                "description": sanitize_input((description or "").strip()),
                "updated_at": utc_now_iso(),
            }
        )
        document.categories[index] = updated
        log_activity(document, "Category updated", category=updated.name)

        await self.store.save()
        logger.info("[CATALOG] Category updated: id=%d name=%s", category_id, updated.name)
        return updated

    async def delete_category(self, category_id: int) -> Category:
        """Delete a category that no product uses.

        Products reference categories by name; any product still carrying
        this name blocks the deletion (CategoryInUseError with the count).
        """
        document = self.document
        index = self._category_index(category_id)
        category = document.categories[index]

        in_use = sum(1 for p in document.products if p.category == category.name)
        if in_use:
            raise CategoryInUseError(category.name, in_use)

        del document.categories[index]
        log_activity(document, "Category deleted", category=category.name)

        await self.store.save()
        logger.info("[CATALOG] Category deleted: id=%d name=%s", category_id, category.name)
        return category

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(
        self,
        page: int = 1,
        limit: int = DEFAULT_PUBLIC_PAGE_SIZE,
        active_only: bool = True,
    ) -> ProductPage:
        page = page if page and page > 0 else 1
        limit = limit if limit and limit > 0 else DEFAULT_PUBLIC_PAGE_SIZE

        products = self.document.products
        if active_only:
            products = [p for p in products if p.is_active]

        start = (page - 1) * limit
        return ProductPage(
            products=products[start:start + limit],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=len(products),
                pages=math.ceil(len(products) / limit),
            ),
        )

    def _product_index(self, product_id: int) -> int:
        for index, product in enumerate(self.document.products):
            if product.id == product_id:
                return index
        raise NotFoundError("product", product_id)

    def get_product(self, product_id: int) -> Product:
        return self.document.products[self._product_index(product_id)]

    async def create_product(self, payload: Dict[str, Any]) -> Product:
        document = self.document
        fields = validate_product(payload)

        errors = featured_cap_errors(
            document.products,
            None,
            will_be_active=fields.get("status", ProductStatus.ACTIVE) == ProductStatus.ACTIVE,
            will_be_featured=bool(fields.get("featured", False)),
        )
        if errors:
            raise ValidationFailed(errors)

        fields.setdefault("sales", 0)
        product = Product(id=next_id(document.products), image=None, **fields)
        document.products.append(product)
        log_activity(document, "Added", product=product.name)

        await self.store.save()
        logger.info("[CATALOG] Product created: id=%d name=%s", product.id, product.name)
        return product

    async def update_product(self, product_id: int, payload: Dict[str, Any]) -> Product:
        """Apply a partial update. Fields absent from `payload` are kept."""
        document = self.document
        index = self._product_index(product_id)
        fields = validate_product(payload, partial=True)

        current = document.products[index]
        updated = current.model_copy(update={**fields, "updated_at": utc_now_iso()})

        errors = featured_cap_errors(
            document.products,
            product_id,
            will_be_active=updated.is_active,
            will_be_featured=updated.featured,
        )
        if errors:
            raise ValidationFailed(errors)

        document.products[index] = updated
        log_activity(document, "Updated", product=updated.name)

        await self.store.save()
        logger.info("[CATALOG] Product updated: id=%d name=%s", product_id, updated.name)
        return updated

    async def delete_product(self, product_id: int) -> Product:
        """Remove a product, then best-effort its image file once saved."""
        document = self.document
        index = self._product_index(product_id)
        product = document.products.pop(index)
        log_activity(document, "Deleted", product=product.name)

        await self.store.save()
        if product.image:
            self.uploads.delete(product.image)
        logger.info("[CATALOG] Product deleted: id=%d name=%s", product_id, product.name)
        return product

    async def attach_image(
        self,
        product_id: int,
        original_name: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> Product:
        """Store an uploaded image and point the product at it.

        A previous image file is deleted once the saved document no
        longer references it.
        """
        document = self.document
        index = self._product_index(product_id)
        filename = self.uploads.save(original_name, content_type, data)

        current = document.products[index]
        previous = current.image
        updated = current.model_copy(
            update={"image": public_path(filename), "updated_at": utc_now_iso()}
        )
        document.products[index] = updated
        log_activity(document, "Image updated", product=updated.name)

        await self.store.save()
        if previous:
            self.uploads.delete(previous)
        logger.info("[CATALOG] Product image set: id=%d file=%s", product_id, filename)
        return updated

    # ------------------------------------------------------------------
    # Dashboard read models
    # ------------------------------------------------------------------

    def stats(self) -> Stats:
        """Recompute the cached counters and return them."""
        document = self.document
        document.stats.total_products = sum(1 for p in document.products if p.is_active)
        document.stats.total_orders = len(document.orders)
        return document.stats

    def recent_activity(self, limit: int = 20) -> List[ActivityEntry]:
        return recent_activity(self.document, limit)

    def popular_products(self, limit: int = 3) -> List[PopularProduct]:
        active = [p for p in self.document.products if p.is_active]
        active.sort(key=lambda p: p.sales, reverse=True)
        return [PopularProduct(name=p.name, sales=p.sales) for p in active[:limit]]

    def list_orders(self) -> List[Dict[str, Any]]:
        return list(self.document.orders)
