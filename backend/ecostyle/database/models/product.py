"""
Product model for the sustainable fashion catalog.

Products carry their price, stock level and the eco tags that describe how
they were made. Only products with stock are offered to buyers.
"""

import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from ecostyle.database.base import BaseModel
from ecostyle.services.payments.pricing import to_money

MAX_PRODUCT_PRICE = Decimal("10000.00")
DEFAULT_SUSTAINABILITY_SCORE = 75


class ProductCategory(str, Enum):
    """Catalog categories."""

    T_SHIRTS = "t-shirts"
    HOODIES = "hoodies"
    SHOES = "shoes"
    ACCESSORIES = "accessories"


class EcoTag(str, Enum):
    """Sustainability attributes a product can be tagged with."""

    ORGANIC_COTTON = "organic-cotton"
    RECYCLED_MATERIALS = "recycled-materials"
    BIODEGRADABLE = "biodegradable"
    HANDMADE = "handmade"
    ETHICAL_MANUFACTURING = "ethical-manufacturing"
    CARBON_NEUTRAL = "carbon-neutral"
    WATER_CONSERVATION = "water-conservation"
    FAIR_TRADE = "fair-trade"


class Product(BaseModel):
    """
    Catalog product.

    Attributes:
        id: Unique product identifier (UUID)
        name: Display name
        description: Product description
        price: Unit price, two decimal places
        category: One of the ProductCategory values
        eco_tags: EcoTag values describing the product
        image_url: Product image location
        stock_qty: Units available
        featured: Whether the product is promoted on the storefront
        sustainability_score: Score between 0 and 100
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Product name",
    )

    description: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="Product description",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        index=True,
        comment="Unit price",
    )

    category: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="Product category",
    )

    eco_tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(40)),
        nullable=False,
        default=list,
        comment="Sustainability tags",
    )

    image_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Product image URL",
    )

    stock_qty: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Units in stock",
    )

    featured: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Promoted on the storefront",
    )

    sustainability_score: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=DEFAULT_SUSTAINABILITY_SCORE,
        comment="Sustainability score from 0 to 100",
    )

    __table_args__ = (
        Index("ix_products_eco_tags_gin", "eco_tags", postgresql_using="gin"),
        CheckConstraint(
            "price > 0 AND price <= 10000",
            name="ck_products_price_range",
        ),
        CheckConstraint("stock_qty >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint(
            "sustainability_score IS NULL OR "
            "(sustainability_score >= 0 AND sustainability_score <= 100)",
            name="ck_products_sustainability_score_range",
        ),
        CheckConstraint(
            "category IN ('t-shirts', 'hoodies', 'shoes', 'accessories')",
            name="ck_products_category",
        ),
    )

    def __init__(self, **kwargs: Any):
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("eco_tags", [])
        kwargs.setdefault("stock_qty", 0)
        kwargs.setdefault("featured", False)
        kwargs.setdefault("sustainability_score", DEFAULT_SUSTAINABILITY_SCORE)
        if "price" in kwargs and kwargs["price"] is not None:
            kwargs["price"] = to_money(kwargs["price"])
        super().__init__(**kwargs)

    @property
    def in_stock(self) -> bool:
        """Check if at least one unit is available."""
        return self.stock_qty > 0

    @property
    def formatted_price(self) -> str:
        """Price formatted as a currency string."""
        return f"${to_money(self.price):,.2f}"

    def to_dict(self) -> dict[str, Any]:
        """Convert product to dictionary representation."""
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "price": str(to_money(self.price)),
            "formatted_price": self.formatted_price,
            "category": self.category,
            "eco_tags": list(self.eco_tags or []),
            "image_url": self.image_url,
            "stock_qty": self.stock_qty,
            "in_stock": self.in_stock,
            "featured": self.featured,
            "sustainability_score": self.sustainability_score,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
