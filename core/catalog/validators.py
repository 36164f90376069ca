"""
core.catalog.validators

Input validation for products and categories.

Validation never mutates the store: it returns cleaned values or raises
ValidationFailed carrying one message per offending field, so a request
is either applied completely or not at all.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from exceptions.exceptions import ValidationFailed
from runtime.models.store_models import Category, Product, ProductStatus


# At most this many active products may be featured at once.
MAX_FEATURED_PRODUCTS = 3


def sanitize_input(value: Any) -> Any:
    """Strip angle brackets from strings; other values pass through."""
    if not isinstance(value, str):
        return value
    return value.replace("<", "").replace(">", "")


class ProductInput(BaseModel):
    """Writable product fields as sent by the admin client.

    Every field is optional here; required-on-create is checked separately
    so updates can be partial. Numeric strings are coerced ("12.5" -> 12.5).
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    stock: Optional[int] = Field(default=None, ge=0)
    status: Optional[ProductStatus] = None
    featured: Optional[bool] = None
    sales: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", "category", "description", mode="before")
    @classmethod
    def _sanitize(cls, value):
        if isinstance(value, str):
            return sanitize_input(value.strip())
        return value


def _format_errors(exc: ValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "body"
        messages.append(f"{field}: {err['msg']}")
    return messages


def validate_product(payload: Dict[str, Any], *, partial: bool = False) -> Dict[str, Any]:
    """Validate a product payload and return only the fields it sets.

    Parameters
    ----------
    payload:
        Raw JSON object from the client.
    partial:
        True for updates: nothing is required and only provided fields
        are returned.

    Raises
    ------
    ValidationFailed
        With every field-level problem found.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed(["body: expected a JSON object"])

    # Explicit nulls mean "not provided".
    cleaned = {k: v for k, v in payload.items() if v is not None}

    errors: List[str] = []
    fields: Dict[str, Any] = {}
    try:
        parsed = ProductInput.model_validate(cleaned)
    except ValidationError as e:
        errors.extend(_format_errors(e))
    else:
        fields = parsed.model_dump(exclude_unset=True)

    if not partial:
        if "name" not in cleaned or fields.get("name") == "":
            errors.append("name: product name is required")
        if "price" not in cleaned:
            errors.append("price: product price is required")
    elif fields.get("name") == "":
        errors.append("name: product name cannot be empty")

    if errors:
        raise ValidationFailed(errors)
    return fields


def featured_cap_errors(
    products: Iterable[Product],
    product_id: Optional[int],
    will_be_active: bool,
    will_be_featured: bool,
) -> List[str]:
    """Check that the resulting product keeps the featured cap.

    `product_id` is the product being updated (None on create); it is
    excluded from the count so re-saving an already featured product is
    always allowed.
    """
    if not (will_be_active and will_be_featured):
        return []
    others = sum(
        1
        for p in products
        if p.id != product_id and p.featured and p.is_active
    )
    if others >= MAX_FEATURED_PRODUCTS:
        return [
            f"featured: at most {MAX_FEATURED_PRODUCTS} active products can be featured"
        ]
    return []


def validate_category_name(
    name: Any,
    categories: Iterable[Category],
    exclude_id: Optional[int] = None,
) -> str:
    """Return the sanitized category name or raise ValidationFailed.

    Names must be non-empty strings, unique case-insensitively among the
    other categories.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationFailed(["name: category name is required"])

    cleaned = sanitize_input(name.strip())
    if not cleaned:
        raise ValidationFailed(["name: category name cannot be empty"])

    lowered = cleaned.lower()
    for category in categories:
        if category.id != exclude_id and category.name.lower() == lowered:
            raise ValidationFailed(["name: a category with that name already exists"])
    return cleaned
