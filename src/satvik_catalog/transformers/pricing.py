"""Price formatting and price/stock reconciliation between products and variants."""

import re
from collections.abc import Sequence

from satvik_catalog.models.catalog import UnifiedProductVariant

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def parse_price(value: str | float | int | None) -> float | None:
    """Extract the numeric amount from a price like ``"$5.99"`` or ``"1,299.00 CAD"``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    match = _NUMBER_RE.search(value.replace(",", ""))
    if not match:
        return None
    return float(match.group())


def format_price(amount: str | float | int | None) -> str:
    """Format a price as ``$12.50``; a missing or non-numeric amount formats as an empty string."""
    value = parse_price(amount)
    if value is None:
        return ""
    return f"${value:.2f}"


def resolve_price(top_level: str | None, variants: Sequence[UnifiedProductVariant]) -> str:
    """
    Pick the product-level display price.

    A non-empty top-level price wins. Otherwise the first in-stock variant
    that has a price, then the first variant that has a price. Returns an
    empty string when nothing is priced.
    """
    if top_level and top_level.strip():
        return top_level.strip()
    priced = [v for v in variants if v.price]
    for variant in priced:
        if variant.in_stock:
            return variant.price
    if priced:
        return priced[0].price
    return ""


def resolve_in_stock(explicit: bool | None, variants: Sequence[UnifiedProductVariant]) -> bool:
    """Use the source's own flag when given, else any variant in stock; no variants means in stock."""
    if explicit is not None:
        return bool(explicit)
    if variants:
        return any(v.in_stock for v in variants)
    return True


def default_variant_label(
    explicit: str | None,
    variants: Sequence[UnifiedProductVariant],
) -> str | None:
    if explicit:
        return explicit
    return variants[0].name if variants else None
