"""Product search ranking."""

from catalog_service.models import Product

# Rank tiers: lower sorts first
TITLE_PREFIX = 1
VENDOR_PREFIX = 2
TYPE_PREFIX = 3
OTHER_MATCH = 4


def matches_query(product: Product, query: str) -> bool:
    """Case-insensitive substring match on title, vendor, product type or any tag."""
    needle = query.lower()
    fields = (product.title, product.vendor, product.product_type, *product.tags)
    return any(needle in value.lower() for value in fields if value)


def match_tier(product: Product, query: str) -> int:
    needle = query.lower()
    if product.title.lower().startswith(needle):
        return TITLE_PREFIX
    if (product.vendor or "").lower().startswith(needle):
        return VENDOR_PREFIX
    if (product.product_type or "").lower().startswith(needle):
        return TYPE_PREFIX
    return OTHER_MATCH


def rank_products(products: list[Product], query: str) -> list[Product]:
    """
    Filter ``products`` to those matching ``query`` and order them.

    Title-prefix matches come first, then vendor-prefix, then type-prefix,
    then every other match. Ties are broken by title ascending.
    """
    matched = [p for p in products if matches_query(p, query)]
    return sorted(matched, key=lambda p: (match_tier(p, query), p.title.lower(), p.title))
