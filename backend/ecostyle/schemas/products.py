"""
Product catalog Pydantic schemas for API request/response validation.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecostyle.database.models.product import (
    MAX_PRODUCT_PRICE,
    EcoTag,
    ProductCategory,
)
from ecostyle.schemas.orders import Money
from ecostyle.services.payments.pricing import to_money

IMAGE_URL_PATTERN = re.compile(r"^https?://.+\.(jpg|jpeg|png|webp)$", re.IGNORECASE)
PLACEHOLDER_IMAGE_PREFIX = "https://via.placeholder.com/"


def _validate_image_url(v: str) -> str:
    if IMAGE_URL_PATTERN.match(v) or v.startswith(PLACEHOLDER_IMAGE_PREFIX):
        return v
    raise ValueError("Please provide a valid image URL")


def _normalize_eco_tags(v):
    if v is None:
        return v
    return [tag.lower() if isinstance(tag, str) else tag for tag in v]


class ProductCreateRequest(BaseModel):
    """Product creation request."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "name": "Organic Cotton Tee",
                "description": "Soft tee made from certified organic cotton.",
                "price": "29.99",
                "category": "t-shirts",
                "eco_tags": ["organic-cotton", "fair-trade"],
                "image_url": "https://cdn.example.com/tee.jpg",
                "stock_qty": 25,
                "featured": True,
            }
        },
    )

    name: str = Field(..., min_length=1, max_length=100, description="Product name")
    description: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Product description",
    )
    price: Decimal = Field(
        ...,
        gt=0,
        le=MAX_PRODUCT_PRICE,
        description="Unit price, between 0.01 and 10,000",
    )
    category: ProductCategory = Field(..., description="Product category")
    eco_tags: list[EcoTag] = Field(default_factory=list, description="Eco tags")
    image_url: str = Field(..., max_length=500, description="Product image URL")
    stock_qty: int = Field(..., ge=0, description="Units in stock")
    featured: bool = Field(False, description="Promote on the storefront")
    sustainability_score: int = Field(75, ge=0, le=100)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        """Lower-case the category."""
        return v.lower() if isinstance(v, str) else v

    @field_validator("eco_tags", mode="before")
    @classmethod
    def normalize_eco_tags(cls, v):
        """Lower-case eco tags."""
        return _normalize_eco_tags(v)

    @field_validator("price")
    @classmethod
    def round_price(cls, v: Decimal) -> Decimal:
        """Round price to cents."""
        return to_money(v)

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str) -> str:
        """Require an image file URL or a placeholder image."""
        return _validate_image_url(v)


class ProductUpdateRequest(BaseModel):
    """Product update request; only provided fields change."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    price: Optional[Decimal] = Field(None, gt=0, le=MAX_PRODUCT_PRICE)
    category: Optional[ProductCategory] = None
    eco_tags: Optional[list[EcoTag]] = None
    image_url: Optional[str] = Field(None, max_length=500)
    stock_qty: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None
    sustainability_score: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        """Lower-case the category."""
        return v.lower() if isinstance(v, str) else v

    @field_validator("eco_tags", mode="before")
    @classmethod
    def normalize_eco_tags(cls, v):
        """Lower-case eco tags."""
        return _normalize_eco_tags(v)

    @field_validator("price")
    @classmethod
    def round_price(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        """Round price to cents."""
        return to_money(v) if v is not None else v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        """Require an image file URL or a placeholder image."""
        return _validate_image_url(v) if v is not None else v


class ProductResponse(BaseModel):
    """Product response with derived fields."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    price: Money
    formatted_price: str
    category: str
    eco_tags: list[str]
    image_url: str
    stock_qty: int
    in_stock: bool
    featured: bool
    sustainability_score: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductPagination(BaseModel):
    """Pagination block for product listings."""

    current_page: int
    total_pages: int
    total_products: int
    has_next: bool
    has_prev: bool


class ProductListResponse(BaseModel):
    """Paginated product listing."""

    products: list[ProductResponse]
    pagination: ProductPagination


class SearchPagination(BaseModel):
    """Pagination block for search results."""

    current_page: int
    total_pages: int
    total_results: int


class ProductSearchResponse(BaseModel):
    """Product search results."""

    products: list[ProductResponse]
    query: str
    pagination: SearchPagination


class FeaturedProductsResponse(BaseModel):
    """Featured products."""

    products: list[ProductResponse]


class CategoriesResponse(BaseModel):
    """Categories and eco tags in use in the catalog."""

    categories: list[str]
    eco_tags: list[str]


class ProductMessageResponse(BaseModel):
    """Product mutation response."""

    message: str
    product: ProductResponse


class ProductDeletedResponse(BaseModel):
    """Product deletion response."""

    message: str
    product_id: UUID


class ProductDetailResponse(BaseModel):
    product: ProductResponse
