"""
Record types for the store document.

The whole persisted state is one JSON object (StoreDocument). On disk the
keys keep their camelCase names (passwordHash, createdAt, activityLog, ...)
through field aliases; Python code uses snake_case attributes.

Orders are produced by the checkout flow and kept opaque here: the store
round-trips them without interpreting their shape.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class _Record(BaseModel):
    # Accept both the on-disk alias and the attribute name. Keys without a
    # field (extra product attributes and the like) are kept as written.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(_Record):
    id: int
    username: str
    password_hash: str = Field(alias="passwordHash")
    role: str = "admin"


class Category(_Record):
    id: int
    name: str
    description: str = ""
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    @field_validator("description", "created_at", mode="before")
    @classmethod
    def _fill_nulls(cls, value, info: ValidationInfo):
        return cls._null_as_default(value, info)


class Product(_Record):
    id: int
    name: str
    category: str = ""
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    description: str = ""
    image: Optional[str] = None
    status: ProductStatus = ProductStatus.ACTIVE
    featured: bool = False
    sales: int = Field(default=0, ge=0)
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    # Older writers stored explicit nulls for cleared fields.
    @field_validator(
        "category", "stock", "description", "status", "featured", "sales", "created_at",
        mode="before",
    )
    @classmethod
    def _fill_nulls(cls, value, info: ValidationInfo):
        return cls._null_as_default(value, info)

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE


class ActivityEntry(_Record):
    action: str
    product: Optional[str] = None
    category: Optional[str] = None
    date: str = Field(default_factory=utc_now_iso)


class Stats(_Record):
    total_products: int = Field(default=0, alias="totalProducts")
    total_orders: int = Field(default=0, alias="totalOrders")
    total_revenue: float = Field(default=0.0, alias="totalRevenue")
    total_customers: int = Field(default=0, alias="totalCustomers")

    @field_validator("*", mode="before")
    @classmethod
    def _fill_nulls(cls, value, info: ValidationInfo):
        return cls._null_as_default(value, info)


class StoreDocument(_Record):
    users: List[User] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    orders: List[Dict[str, Any]] = Field(default_factory=list)
    stats: Stats = Field(default_factory=Stats)
    activity_log: List[ActivityEntry] = Field(
        default_factory=list, alias="activityLog"
    )

    def to_json_dict(self) -> Dict[str, Any]:
        """Return the document as it is written to disk (aliased keys)."""
        return self.model_dump(mode="json", by_alias=True)
