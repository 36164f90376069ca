"""
HTTP request/response models for the storefront runtime API.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .store_models import Product


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    success: bool = True
    token: str


class CategoryRequest(BaseModel):
    name: Any = None
    description: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ProductPage(BaseModel):
    products: List[Product]
    pagination: Pagination


class PopularProduct(BaseModel):
    name: str
    sales: int


class CleanupReport(BaseModel):
    """
    Result of an orphaned-upload collection run.

    - total_files: regular files found in the uploads directory
    - product_images: distinct filenames referenced by products
    - deleted_count / deleted_files: orphans actually removed
    """
    model_config = ConfigDict(populate_by_name=True)

    total_files: int = Field(default=0, alias="totalFiles")
    product_images: int = Field(default=0, alias="productImages")
    deleted_count: int = Field(default=0, alias="deletedCount")
    deleted_files: List[str] = Field(default_factory=list, alias="deletedFiles")


class OrphanScan(BaseModel):
    """Read-only view of the uploads directory against product references."""
    model_config = ConfigDict(populate_by_name=True)

    total_files: int = Field(default=0, alias="totalFiles")
    product_images: int = Field(default=0, alias="productImages")
    orphaned_files: List[str] = Field(default_factory=list, alias="orphanedFiles")
    all_files: List[str] = Field(default_factory=list, alias="allFiles")
    product_image_list: List[str] = Field(
        default_factory=list, alias="productImageList"
    )

