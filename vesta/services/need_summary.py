"""Human-readable summary of a prospect's search criteria."""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

NO_REQUIREMENTS = "No specific requirements"


def format_euros(amount: Any) -> Optional[str]:
    """
    Format an amount as euros with thousands separators.

    Integral amounts print without decimals ("€100,000"); fractional ones keep
    up to three decimals. Returns None for blank or non-numeric input.
    """
    if amount is None or amount == "":
        return None
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None

    if value == value.to_integral_value():
        return f"€{int(value):,}"
    return "€" + f"{value:,.3f}".rstrip("0").rstrip(".")


def build_need_summary(prospect: Mapping[str, Any]) -> str:
    """
    Build the comma-joined summary shown on prospect cards.

    Order: property type, bedrooms, surface, price range.
    """
    parts: list[str] = []

    if prospect.get("property_type"):
        parts.append(str(prospect["property_type"]))

    if prospect.get("min_bedrooms"):
        parts.append(f"{prospect['min_bedrooms']}+ bedrooms")

    if prospect.get("min_square_meters"):
        parts.append(f"{prospect['min_square_meters']}+ m²")

    min_price = format_euros(prospect.get("min_price"))
    max_price = format_euros(prospect.get("max_price"))

    if min_price and max_price:
        parts.append(f"{min_price} - {max_price}")
    elif min_price:
        parts.append(f"from {min_price}")
    elif max_price:
        parts.append(f"up to {max_price}")

    return ", ".join(parts) or NO_REQUIREMENTS
