"""
Product catalog data access repository.

Buyer-facing queries (listing, search, featured) only return products that
are in stock; administrative lookups by ID see the whole catalog.
"""

import uuid
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ecostyle.core.logging import get_logger
from ecostyle.database.models.product import Product

logger = get_logger(__name__)

SORTABLE_FIELDS = {
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
    "price": Product.price,
    "name": Product.name,
    "sustainability_score": Product.sustainability_score,
    "stock_qty": Product.stock_qty,
}


class ProductRepositoryError(Exception):
    """Base exception for product repository errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ProductNotFoundError(ProductRepositoryError):
    """Raised when product is not found."""

    pass


class ProductRepository:
    """Repository for product catalog data access."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _page(
        self,
        conditions: list[Any],
        page: int,
        limit: int,
        ordering: Any,
        operation: str,
    ) -> tuple[Sequence[Product], int]:
        try:
            stmt = (
                select(Product)
                .where(*conditions)
                .order_by(ordering)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            count_stmt = select(func.count()).select_from(Product).where(*conditions)

            result = await self.session.execute(stmt)
            count_result = await self.session.execute(count_stmt)

            products = result.scalars().all()
            total = count_result.scalar_one()

            logger.debug(operation, count=len(products), total=total, page=page)
            return products, total

        except SQLAlchemyError as e:
            logger.error("Product query failed", operation=operation, error=str(e))
            raise ProductRepositoryError(
                "Failed to fetch products",
                operation=operation,
                error=str(e),
            ) from e

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
    ) -> tuple[Sequence[Product], int]:
        """
        List in-stock products with optional filters.

        Returns:
            Tuple of (products, total_count)

        Raises:
            ProductRepositoryError: If the sort column is unknown or the query fails
        """
        column = SORTABLE_FIELDS.get(sort_by)
        if column is None:
            raise ProductRepositoryError("Unsupported sort field", sort_by=sort_by)

        conditions: list[Any] = [Product.stock_qty > 0]
        if category:
            conditions.append(Product.category == category.lower())
        if min_price is not None:
            conditions.append(Product.price >= min_price)
        if max_price is not None:
            conditions.append(Product.price <= max_price)
        if eco_tag:
            conditions.append(Product.eco_tags.contains([eco_tag.lower()]))
        if featured:
            conditions.append(Product.featured.is_(True))

        ordering = column.asc() if sort_order == "asc" else column.desc()
        return await self._page(conditions, page, limit, ordering, "Products listed")

    async def search(
        self,
        query: str,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Product], int]:
        """
        Case-insensitive search on name and description among in-stock products.

        Raises:
            ProductRepositoryError: If the query fails
        """
        conditions = [
            Product.stock_qty > 0,
            or_(
                Product.name.icontains(query, autoescape=True),
                Product.description.icontains(query, autoescape=True),
            ),
        ]
        return await self._page(
            conditions, page, limit, Product.created_at.desc(), "Products searched"
        )

    async def featured(self) -> Sequence[Product]:
        """
        Featured in-stock products, newest first.

        Raises:
            ProductRepositoryError: If the query fails
        """
        try:
            result = await self.session.execute(
                select(Product)
                .where(Product.featured.is_(True), Product.stock_qty > 0)
                .order_by(Product.created_at.desc())
            )
            return result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch featured products", error=str(e))
            raise ProductRepositoryError(
                "Failed to fetch featured products",
                error=str(e),
            ) from e

    async def categories(self) -> tuple[list[str], list[str]]:
        """
        Distinct categories and eco tags in use, both sorted.

        Raises:
            ProductRepositoryError: If the query fails
        """
        try:
            category_result = await self.session.execute(
                select(Product.category).distinct()
            )
            tag_column = func.unnest(Product.eco_tags).label("tag")
            tag_result = await self.session.execute(select(tag_column).distinct())

            categories = sorted(category_result.scalars().all())
            eco_tags = sorted(tag_result.scalars().all())
            return categories, eco_tags
        except SQLAlchemyError as e:
            logger.error("Failed to fetch categories", error=str(e))
            raise ProductRepositoryError(
                "Failed to fetch categories",
                error=str(e),
            ) from e

    async def find_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        """
        Get product by ID.

        Raises:
            ProductRepositoryError: If the query fails
        """
        try:
            return await self.session.get(Product, product_id)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to fetch product",
                product_id=str(product_id),
                error=str(e),
            )
            raise ProductRepositoryError(
                "Failed to fetch product",
                product_id=str(product_id),
                error=str(e),
            ) from e

    async def insert(self, product: Product) -> Product:
        """
        Persist a new product.

        Raises:
            ProductRepositoryError: If the insert fails
        """
        try:
            self.session.add(product)
            await self.session.commit()
            await self.session.refresh(product)

            logger.info(
                "Product created",
                product_id=str(product.id),
                name=product.name,
            )
            return product
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to create product", error=str(e))
            raise ProductRepositoryError(
                "Failed to create product",
                error=str(e),
            ) from e

    async def update_fields(
        self,
        product_id: uuid.UUID,
        changes: dict[str, Any],
    ) -> Optional[Product]:
        """
        Apply a partial update to a product.

        Returns:
            Updated product, or None if it does not exist

        Raises:
            ProductRepositoryError: If the update fails
        """
        product = await self.find_by_id(product_id)
        if product is None:
            return None

        try:
            for name, value in changes.items():
                setattr(product, name, value)
            await self.session.commit()
            await self.session.refresh(product)

            logger.info(
                "Product updated",
                product_id=str(product_id),
                fields=sorted(changes),
            )
            return product
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to update product",
                product_id=str(product_id),
                error=str(e),
            )
            raise ProductRepositoryError(
                "Failed to update product",
                product_id=str(product_id),
                error=str(e),
            ) from e

    async def delete(self, product_id: uuid.UUID) -> bool:
        """
        Delete a product.

        Returns:
            True if the product was deleted, False if it did not exist

        Raises:
            ProductRepositoryError: If deletion fails
        """
        product = await self.find_by_id(product_id)
        if product is None:
            return False

        try:
            await self.session.delete(product)
            await self.session.commit()
            logger.info("Product deleted", product_id=str(product_id))
            return True
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Failed to delete product",
                product_id=str(product_id),
                error=str(e),
            )
            raise ProductRepositoryError(
                "Failed to delete product",
                product_id=str(product_id),
                error=str(e),
            ) from e
