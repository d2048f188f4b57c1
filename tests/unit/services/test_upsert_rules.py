"""Unit tests for feed-to-record reconciliation rules."""

from datetime import datetime
from decimal import Decimal

import pytest

from catalog_service.models import Product
from catalog_service.services.feed_parser import (
    parse_image,
    parse_option,
    parse_product,
    parse_variant,
)
from catalog_service.services.upsert_rules import (
    build_image,
    build_option,
    build_variant,
    join_option_values,
    parse_price,
    reconcile_product,
)


class TestParsePrice:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("19.99", Decimal("19.99")),
            (" 5.00 ", Decimal("5.00")),
            (12, Decimal("12")),
            (7.5, Decimal("7.5")),
            ("19.999", Decimal("19.999")),
        ],
    )
    def test_numeric_values(self, value, expected: Decimal) -> None:
        assert parse_price(value) == expected

    @pytest.mark.parametrize("value", [None, "n/a", "", "NaN", "Infinity", True, [1]])
    def test_unusable_values_are_zero(self, value) -> None:
        assert parse_price(value) == Decimal("0")


class TestJoinOptionValues:
    def test_joins_with_comma(self) -> None:
        assert join_option_values(["S", "M", "L"]) == "S,M,L"

    def test_single_value(self) -> None:
        assert join_option_values(["One size"]) == "One size"

    def test_empty_list_is_empty_string(self) -> None:
        assert join_option_values([]) == ""

    def test_none_stays_none(self) -> None:
        assert join_option_values(None) is None


class TestReconcileProduct:
    def test_new_product_has_no_surrogate_id(self) -> None:
        incoming = parse_product({"id": 1001, "title": "Sweater", "tags": ["a"]})

        product = reconcile_product(None, incoming)

        assert product.id is None
        assert product.external_id == 1001
        assert product.title == "Sweater"
        assert product.tags == ["a"]

    def test_existing_product_keeps_ids_and_takes_feed_fields(self) -> None:
        existing = Product(
            id=7,
            external_id=1001,
            title="Old",
            vendor="Old vendor",
            body_html="<p>old</p>",
            tags=["x"],
            created_at=datetime(2020, 1, 1),
        )
        incoming = parse_product(
            {"id": 1001, "title": "New", "vendor": "Famme", "tags": ["y", "z"]}
        )

        product = reconcile_product(existing, incoming)

        assert product.id == 7
        assert product.external_id == 1001
        assert product.title == "New"
        assert product.vendor == "Famme"
        # Absent feed fields overwrite stored values
        assert product.body_html is None
        assert product.created_at is None
        assert product.tags == ["y", "z"]

    def test_existing_record_is_not_mutated(self) -> None:
        existing = Product(id=7, external_id=1001, title="Old")
        reconcile_product(existing, parse_product({"id": 1001, "title": "New"}))
        assert existing.title == "Old"


class TestChildBuilders:
    def test_build_variant(self) -> None:
        incoming = parse_variant(
            {
                "id": 2001,
                "title": "S / Red",
                "option1": "S",
                "option2": "Red",
                "sku": "SKU-1",
                "price": "19.99",
                "available": True,
                "created_at": "2023-12-01T10:30:00+00:00",
            }
        )

        variant = build_variant(7, incoming)

        assert variant.id is None
        assert variant.external_id == 2001
        assert variant.product_id == 7
        assert variant.option2 == "Red"
        assert variant.price == Decimal("19.99")
        assert variant.available is True
        assert variant.created_at == datetime(2023, 12, 1, 10, 30)

    def test_build_variant_defaults(self) -> None:
        variant = build_variant(7, parse_variant({"id": 2002, "price": "n/a"}))
        assert variant.price == Decimal("0")
        assert variant.available is False

    def test_build_image(self) -> None:
        incoming = parse_image(
            {"id": 3001, "src": "https://cdn.test/a.jpg", "width": 800, "height": 600, "position": 2}
        )

        image = build_image(7, incoming)

        assert image.external_id == 3001
        assert image.product_id == 7
        assert (image.width, image.height, image.position) == (800, 600, 2)

    def test_build_option(self) -> None:
        option = build_option(7, parse_option({"name": "Size", "position": 1, "values": ["S", "M", "L"]}))

        assert option.product_id == 7
        assert option.name == "Size"
        assert option.position == 1
        assert option.values == "S,M,L"
