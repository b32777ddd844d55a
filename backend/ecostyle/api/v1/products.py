"""
Product catalog API endpoints.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, status

from ecostyle.api.deps import Products
from ecostyle.api.errors import PRODUCT_ERRORS, product_http_exception
from ecostyle.core.logging import get_logger
from ecostyle.schemas.products import (
    CategoriesResponse,
    FeaturedProductsResponse,
    ProductCreateRequest,
    ProductDeletedResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductMessageResponse,
    ProductPagination,
    ProductResponse,
    ProductSearchResponse,
    ProductUpdateRequest,
    SearchPagination,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="List in-stock products with category, price, tag and featured filters",
)
async def list_products(
    service: Products,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    eco_tag: Optional[str] = None,
    featured: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> ProductListResponse:
    """
    List products.

    Raises:
        HTTPException: 400 for invalid paging or sorting, 500 if the query fails
    """
    try:
        products, pagination = await service.list_products(
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
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "fetch_products") from e

    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        pagination=ProductPagination(**pagination),
    )


@router.get(
    "/search",
    response_model=ProductSearchResponse,
    summary="Search products",
)
async def search_products(
    service: Products,
    name: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> ProductSearchResponse:
    """Search in-stock products by name or description."""
    try:
        products, query, pagination = await service.search_products(
            name,
            page=page,
            limit=limit,
        )
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "search_products") from e

    return ProductSearchResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        query=query,
        pagination=SearchPagination(**pagination),
    )


@router.get("/featured", response_model=FeaturedProductsResponse)
async def featured_products(service: Products) -> FeaturedProductsResponse:
    try:
        products = await service.featured_products()
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "fetch_featured_products") from e

    return FeaturedProductsResponse(
        products=[ProductResponse.model_validate(p) for p in products],
    )


@router.get("/categories", response_model=CategoriesResponse)
async def categories(service: Products) -> CategoriesResponse:
    try:
        category_names, eco_tags = await service.categories()
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "fetch_categories") from e

    return CategoriesResponse(categories=category_names, eco_tags=eco_tags)


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(product_id: UUID, service: Products) -> ProductDetailResponse:
    try:
        product = await service.get_product(product_id)
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "fetch_product") from e

    return ProductDetailResponse(product=ProductResponse.model_validate(product))


@router.post(
    "",
    response_model=ProductMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
)
async def create_product(
    request: ProductCreateRequest,
    service: Products,
) -> ProductMessageResponse:
    logger.info("Creating product", name=request.name, category=request.category)

    try:
        product = await service.create_product(request)
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "create_product") from e

    return ProductMessageResponse(
        message="Product created successfully",
        product=ProductResponse.model_validate(product),
    )


@router.put(
    "/{product_id}",
    response_model=ProductMessageResponse,
    summary="Update product",
)
async def update_product(
    product_id: UUID,
    request: ProductUpdateRequest,
    service: Products,
) -> ProductMessageResponse:
    try:
        product = await service.update_product(product_id, request)
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "update_product") from e

    return ProductMessageResponse(
        message="Product updated successfully",
        product=ProductResponse.model_validate(product),
    )


@router.delete(
    "/{product_id}",
    response_model=ProductDeletedResponse,
    summary="Delete product",
)
async def delete_product(
    product_id: UUID,
    service: Products,
) -> ProductDeletedResponse:
    try:
        await service.delete_product(product_id)
    except PRODUCT_ERRORS as e:
        raise product_http_exception(e, "delete_product") from e

    logger.info("Product deleted", product_id=str(product_id))
    return ProductDeletedResponse(
        message="Product deleted successfully",
        product_id=product_id,
    )
