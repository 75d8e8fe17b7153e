"""Quotation item ordering and pricing."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from tkr_receipts.config.settings import settings
from tkr_receipts.models.quotation import QuotationItem, QuotationStructure, ScopeItem
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)

CATEGORY_ORDER = ["painting", "cladding", "facade_element", "other"]

# Units in display order; anything else sorts alphabetically after these
UNIT_SORT_ORDER = [
    "LUMPSUM", "LS", "LUMP SUM",
    "ALLOWANCE", "ALLOW",
    "SQM", "M2", "SQUARE METER", "SQUARE METERS",
    "SQFT", "SF", "SQUARE FOOT", "SQUARE FEET",
    "LM", "LINEAR METER", "LINEAR METERS",
    "LF", "LINEAR FOOT", "LINEAR FEET",
    "M", "METER", "METERS",
    "FT", "FOOT", "FEET",
    "EACH", "EA", "ITEM", "ITEMS", "UNIT", "UNITS", "NO", "NOS", "NUMBER",
    "SET", "SETS",
    "KG", "KILOGRAM", "KILOGRAMS",
    "TONNE", "TONNES", "TON", "TONS",
    "DAY", "DAYS",
    "HOUR", "HOURS",
    "CBM", "M3", "CUBIC METER", "CUBIC METERS",
    "CY", "CUBIC YARD", "CUBIC YARDS",
]

_UNIT_INDEX = {unit: index for index, unit in enumerate(UNIT_SORT_ORDER)}
_CATEGORY_INDEX = {category: index for index, category in enumerate(CATEGORY_ORDER)}
_CENT = Decimal("0.01")


class PricingError(Exception):
    """A price could not be interpreted."""

    pass


def _category_key(category: str) -> tuple:
    if category in _CATEGORY_INDEX:
        return (0, _CATEGORY_INDEX[category], "")
    return (1, 0, category)


def _unit_key(unit: Optional[str]) -> tuple:
    unit = (unit or "").strip().upper()
    if unit in _UNIT_INDEX:
        return (0, _UNIT_INDEX[unit], "")
    if unit:
        return (1, 0, unit)
    return (2, 0, "")


def sort_quotation_items(items: list[QuotationItem]) -> list[QuotationItem]:
    """
    Order items for display.

    Category first (painting, cladding, facade_element, other, then unknown
    categories alphabetically), then unit of measure by UNIT_SORT_ORDER
    (unknown units alphabetically after the known ones, blank units last),
    then id compared as text.
    """
    return sorted(
        items,
        key=lambda item: (
            _category_key(item.category),
            _unit_key(item.unit_of_measure),
            str(item.id),
        ),
    )


def scope_to_quotation_items(items: list[ScopeItem]) -> list[QuotationItem]:
    """Number scope items 1..N as quotation lines with price placeholders."""
    return [
        QuotationItem(
            id=index + 1,
            category=item.category,
            description=item.item_description,
            quantity=item.quantity,
            material_or_finish=item.material_or_finish,
            dimensions=item.dimensions,
            page_ref=item.page_number,
            unit_of_measure=item.unit_of_measure,
            price_placeholder=f"$[ITEM_PRICE_{index + 1}]",
        )
        for index, item in enumerate(items)
    ]


def parse_money(value: str | float | int | Decimal) -> Decimal:
    """Parse '$1,234.50', '1234.5' or a number into a Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    cleaned = re.sub(r"[^\d.\-]", "", value)
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise PricingError(f"Not a price: {value!r}") from e


def parse_quantity(quantity: str) -> Decimal:
    """Leading number of a free-text quantity ('120.5 sqm' -> 120.5); 1 when there is none."""
    match = re.search(r"-?\d[\d,]*(?:\.\d+)?", quantity or "")
    if not match:
        return Decimal(1)
    return Decimal(match.group(0).replace(",", ""))


def format_money(amount: Decimal) -> str:
    """'$1,234.00' style."""
    return f"${amount.quantize(_CENT, rounding=ROUND_HALF_UP):,.2f}"


def apply_unit_prices(
    quotation: QuotationStructure,
    unit_prices: dict[str, str | float | Decimal],
    tax_rate: Optional[float] = None,
) -> QuotationStructure:
    """
    Fill in prices and totals.

    Args:
        quotation: Quotation to price; not modified
        unit_prices: Unit price per item id (ids compared as text)
        tax_rate: Fraction applied to the subtotal; defaults to the configured rate

    Returns:
        Priced copy of the quotation

    Raises:
        PricingError: If a unit price cannot be parsed
    """
    rate = Decimal(str(settings.quotation.tax_rate if tax_rate is None else tax_rate))
    prices = {str(key): parse_money(value) for key, value in unit_prices.items()}

    priced_items = []
    subtotal = Decimal(0)
    for item in quotation.items:
        unit_price = prices.get(str(item.id))
        if unit_price is None:
            priced_items.append(item.model_copy())
            continue
        line_total = unit_price * parse_quantity(item.quantity)
        subtotal += line_total
        priced_items.append(
            item.model_copy(
                update={"unit_price": format_money(unit_price), "price": format_money(line_total)}
            )
        )

    tax = (subtotal * rate).quantize(_CENT, rounding=ROUND_HALF_UP)
    priced = quotation.model_copy(
        update={
            "items": priced_items,
            "subtotal": format_money(subtotal),
            "tax_amount": format_money(tax) if rate > 0 else None,
            "grand_total": format_money(subtotal + tax),
        }
    )
    logger.info(
        "Quotation priced",
        items=len(priced_items),
        priced_items=sum(1 for i in priced_items if i.price),
        subtotal=priced.subtotal,
        grand_total=priced.grand_total,
    )
    return priced
