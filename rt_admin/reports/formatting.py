"""
Indonesian number, currency, date and month formatting.

Amounts use the id-ID convention: "." groups thousands and "," separates
decimals. Rupiah amounts are whole in practice, so no decimals are shown
unless the amount has them.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Union


MONTH_NAMES = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

Number = Union[Decimal, int, float]


def month_name(month: int) -> str:
    """Indonesian name of a 1-based month."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be 1-12, got {month}")
    return MONTH_NAMES[month - 1]


def format_amount(amount: Number) -> str:
    """35000 -> "35.000", 1234.5 -> "1.234,5"."""
    value = Decimal(str(amount))
    sign = "-" if value < 0 else ""
    value = abs(value)

    whole = int(value)
    fraction = value - whole
    text = f"{whole:,}".replace(",", ".")
    if fraction:
        digits = format(fraction.normalize(), "f").split(".")[1]
        text = f"{text},{digits}"
    return f"{sign}{text}"


def format_currency(amount: Number) -> str:
    """35000 -> "Rp 35.000"."""
    text = format_amount(amount)
    if text.startswith("-"):
        return f"-Rp {text[1:]}"
    return f"Rp {text}"


def parse_amount(text: str) -> Decimal:
    """
    Inverse of format_amount. A leading "Rp" is tolerated.

    Raises:
        ValueError: If the text is not an id-ID formatted number
    """
    cleaned = "".join(text.replace("Rp", "").split())
    cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Not an amount: {text!r}") from e


def format_date(value: Union[date, datetime]) -> str:
    """d/m/yyyy without zero padding, as id-ID short dates read."""
    return f"{value.day}/{value.month}/{value.year}"


def period_label(year: int, month: int) -> str:
    return f"{month_name(month)} {year}"
