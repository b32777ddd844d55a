"""
Tests for the product catalog service and request schemas.
"""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from ecostyle.schemas.products import ProductCreateRequest, ProductUpdateRequest
from ecostyle.services.products.repository import (
    ProductNotFoundError,
    ProductRepository,
)
from ecostyle.services.products.service import ProductService, ProductValidationError


@pytest.fixture
def mock_repository():
    return AsyncMock(spec=ProductRepository)


@pytest.fixture
def service(mock_repository):
    return ProductService(repository=mock_repository)


@pytest.fixture
def create_payload():
    return {
        "name": "Recycled Hoodie",
        "description": "Warm hoodie knit from recycled bottles.",
        "price": "59.999",
        "category": "Hoodies",
        "eco_tags": ["Recycled-Materials", "carbon-neutral"],
        "image_url": "https://cdn.example.com/hoodie.png",
        "stock_qty": 10,
    }


class TestProductSchemas:
    """Catalog request validation."""

    def test_create_request_normalizes_values(self, create_payload):
        request = ProductCreateRequest.model_validate(create_payload)

        assert request.price == Decimal("60.00")
        assert request.category.value == "hoodies"
        assert [tag.value for tag in request.eco_tags] == [
            "recycled-materials",
            "carbon-neutral",
        ]
        assert request.sustainability_score == 75

    @pytest.mark.parametrize(
        "field,value",
        [
            ("price", "0"),
            ("price", "10000.01"),
            ("category", "socks"),
            ("eco_tags", ["vegan-leather"]),
            ("image_url", "https://cdn.example.com/hoodie.gif"),
            ("stock_qty", -1),
            ("name", ""),
        ],
    )
    def test_create_request_rejects_invalid_values(self, create_payload, field, value):
        with pytest.raises(ValidationError):
            ProductCreateRequest.model_validate({**create_payload, field: value})

    def test_placeholder_image_allowed(self, create_payload):
        request = ProductCreateRequest.model_validate(
            {**create_payload, "image_url": "https://via.placeholder.com/300"}
        )

        assert request.image_url == "https://via.placeholder.com/300"


class TestListProducts:
    """Test suite for list_products."""

    @pytest.mark.asyncio
    async def test_pagination_block(self, service, mock_repository, product_factory):
        products = [product_factory() for _ in range(5)]
        mock_repository.list_products.return_value = (products, 45)

        result, pagination = await service.list_products(
            category="t-shirts",
            page=2,
            limit=5,
        )

        assert result == products
        assert pagination == {
            "current_page": 2,
            "total_pages": 9,
            "total_products": 45,
            "has_next": True,
            "has_prev": True,
        }
        kwargs = mock_repository.list_products.call_args.kwargs
        assert kwargs["category"] == "t-shirts"
        assert kwargs["sort_by"] == "created_at"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"limit": 0}, {"limit": 101}, {"sort_by": "password"}],
    )
    async def test_invalid_parameters(self, service, mock_repository, kwargs):
        with pytest.raises(ProductValidationError):
            await service.list_products(**kwargs)

        mock_repository.list_products.assert_not_called()


class TestSearchProducts:
    """Test suite for search_products."""

    @pytest.mark.asyncio
    async def test_search_trims_query(self, service, mock_repository, product_factory):
        mock_repository.search.return_value = ([product_factory()], 1)

        products, query, pagination = await service.search_products("  cotton ")

        assert query == "cotton"
        assert len(products) == 1
        assert pagination == {
            "current_page": 1,
            "total_pages": 1,
            "total_results": 1,
        }
        mock_repository.search.assert_awaited_once_with("cotton", page=1, limit=20)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", " a "])
    async def test_short_query_rejected(self, service, mock_repository, name):
        with pytest.raises(ProductValidationError, match="at least 2 characters"):
            await service.search_products(name)

        mock_repository.search.assert_not_called()


class TestProductLookupAndMutation:
    """Test suite for get, create, update and delete."""

    @pytest.mark.asyncio
    async def test_get_missing_product(self, service, mock_repository):
        mock_repository.find_by_id.return_value = None

        with pytest.raises(ProductNotFoundError):
            await service.get_product(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_create_stores_plain_values(
        self, service, mock_repository, create_payload
    ):
        mock_repository.insert.side_effect = lambda product: product

        product = await service.create_product(
            ProductCreateRequest.model_validate(create_payload)
        )

        assert product.category == "hoodies"
        assert product.eco_tags == ["recycled-materials", "carbon-neutral"]
        assert product.price == Decimal("60.00")
        assert product.in_stock is True

    @pytest.mark.asyncio
    async def test_update_only_sends_provided_fields(
        self, service, mock_repository, product_factory
    ):
        mock_repository.update_fields.return_value = product_factory()

        await service.update_product(
            uuid.uuid4(),
            ProductUpdateRequest.model_validate(
                {"price": "19.5", "category": "SHOES", "name": None}
            ),
        )

        changes = mock_repository.update_fields.call_args.args[1]
        assert changes == {"price": Decimal("19.50"), "category": "shoes"}

    @pytest.mark.asyncio
    async def test_update_missing_product(self, service, mock_repository):
        mock_repository.update_fields.return_value = None

        with pytest.raises(ProductNotFoundError):
            await service.update_product(
                uuid.uuid4(),
                ProductUpdateRequest(stock_qty=3),
            )

    @pytest.mark.asyncio
    async def test_delete_missing_product(self, service, mock_repository):
        mock_repository.delete.return_value = False

        with pytest.raises(ProductNotFoundError):
            await service.delete_product(uuid.uuid4())
