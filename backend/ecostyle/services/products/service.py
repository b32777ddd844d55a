"""
Product catalog service.

Wraps the product repository with input checks and pagination for the
catalog API.
"""

import math
import uuid
from decimal import Decimal
from typing import Any, Optional, Sequence

from ecostyle.core.logging import get_logger
from ecostyle.database.models.product import Product
from ecostyle.schemas.products import ProductCreateRequest, ProductUpdateRequest
from ecostyle.services.products.repository import (
    SORTABLE_FIELDS,
    ProductNotFoundError,
    ProductRepository,
)

logger = get_logger(__name__)

MIN_SEARCH_LENGTH = 2
MAX_PAGE_SIZE = 100


class ProductServiceError(Exception):
    """Base exception for product service errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ProductValidationError(ProductServiceError):
    """Raised when catalog query input is invalid."""

    pass


class ProductService:
    """
    Product catalog service.

    Attributes:
        repository: Product repository for data access
    """

    def __init__(self, repository: ProductRepository):
        self.repository = repository

    @staticmethod
    def _check_paging(page: int, limit: int) -> None:
        if page < 1:
            raise ProductValidationError("Page must be at least 1", page=page)
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ProductValidationError(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}",
                limit=limit,
            )

    async def list_products(
        self,
        category: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        eco_tag: Optional[str] = None,
        featured: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[Sequence[Product], dict[str, Any]]:
        """
        List in-stock products.

        Returns:
            Tuple of (products, pagination block)

        Raises:
            ProductValidationError: If paging or sorting parameters are invalid
        """
        self._check_paging(page, limit)
        if sort_by not in SORTABLE_FIELDS:
            raise ProductValidationError(
                "Unsupported sort field. Must be one of: "
                + ", ".join(sorted(SORTABLE_FIELDS)),
                sort_by=sort_by,
            )

        products, total = await self.repository.list_products(
            category=category,
            min_price=min_price,
            max_price=max_price,
            eco_tag=eco_tag,
            featured=featured,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )

        total_pages = math.ceil(total / limit)
        return products, {
            "current_page": page,
            "total_pages": total_pages,
            "total_products": total,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        }

    async def search_products(
        self,
        name: Optional[str],
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Product], str, dict[str, Any]]:
        """
        Search in-stock products by name or description.

        Returns:
            Tuple of (products, normalized query, pagination block)

        Raises:
            ProductValidationError: If the query is shorter than two characters
        """
        query = (name or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ProductValidationError(
                "Search query must be at least 2 characters long",
                query=query,
            )
        self._check_paging(page, limit)

        products, total = await self.repository.search(query, page=page, limit=limit)
        return products, query, {
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_results": total,
        }

    async def featured_products(self) -> Sequence[Product]:
        return await self.repository.featured()

    async def categories(self) -> tuple[list[str], list[str]]:
        return await self.repository.categories()

    async def get_product(self, product_id: uuid.UUID) -> Product:
        """
        Get product by ID.

        Raises:
            ProductNotFoundError: If the product does not exist
        """
        product = await self.repository.find_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(
                "Product not found",
                product_id=str(product_id),
            )
        return product

    async def create_product(self, request: ProductCreateRequest) -> Product:
        data = request.model_dump()
        data["category"] = request.category.value
        data["eco_tags"] = [tag.value for tag in request.eco_tags]
        return await self.repository.insert(Product(**data))

    async def update_product(
        self,
        product_id: uuid.UUID,
        request: ProductUpdateRequest,
    ) -> Product:
        """
        Update provided product fields.

        Raises:
            ProductNotFoundError: If the product does not exist
        """
        changes = request.model_dump(exclude_unset=True)
        if request.category is not None:
            changes["category"] = request.category.value
        if request.eco_tags is not None:
            changes["eco_tags"] = [tag.value for tag in request.eco_tags]

        # Required columns cannot be cleared
        changes = {name: value for name, value in changes.items() if value is not None}

        product = await self.repository.update_fields(product_id, changes)
        if product is None:
            raise ProductNotFoundError(
                "Product not found",
                product_id=str(product_id),
            )
        return product

    async def delete_product(self, product_id: uuid.UUID) -> None:
        """
        Delete a product.

        Raises:
            ProductNotFoundError: If the product does not exist
        """
        if not await self.repository.delete(product_id):
            raise ProductNotFoundError(
                "Product not found",
                product_id=str(product_id),
            )

