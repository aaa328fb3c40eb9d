"""Input filters and display formatting shared by the waiver forms."""

from __future__ import annotations

import html
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
from zoneinfo import ZoneInfo

import bleach


CURRENCY_SYMBOL = "$"
PHONE_DIGITS = 10

_AMOUNT_PATTERN = re.compile(r"^(\d+(\.\d*)?|\.\d+)$")
_WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_text(text: Optional[str]) -> str:
    """
    Strip markup from user input.

    bleach escapes the text it keeps; that is undone here so "&" and "<" in
    a name or note are stored and printed as typed. Templates escape on output.

    Args:
        text: Raw input text

    Returns:
        Plain text safe for storage and display (surrounding whitespace kept,
        so length checks can still see whitespace-only input)
    """
    if not text:
        return ""

    return html.unescape(bleach.clean(text, tags=[], strip=True))


def digits_only(value: Optional[str]) -> str:
    """Drop every non-digit character, e.g. "(555) 123-4567" -> "5551234567"."""
    return re.sub(r"\D", "", value or "")


def amount_input(value: Optional[str]) -> str:
    """
    Keystroke filter for money fields: digits and a single decimal point.

    A pre-formatted value such as "$1,250.00" passes through as "1250.00".
    """
    kept = re.sub(r"[^\d.]", "", value or "")
    if kept.count(".") > 1:
        head, _, tail = kept.partition(".")
        kept = f"{head}.{tail.replace('.', '')}"
    return kept


def is_valid_amount(value: Optional[str]) -> bool:
    """True for a bare number or an already currency-formatted string."""
    raw = (value or "").strip().replace(",", "")
    if raw.startswith(CURRENCY_SYMBOL):
        raw = raw[len(CURRENCY_SYMBOL):].strip()
    return bool(_AMOUNT_PATTERN.match(raw))


def normalize_currency(value: Optional[str]) -> str:
    """
    Normalise an amount to "$#,##0.00".

    Examples:
        "89.9"      -> "$89.90"
        "$1250"     -> "$1,250.00"
        "0.005"     -> "$0.01"

    Raises:
        ValueError: value is empty or not a number
    """
    if not is_valid_amount(value):
        raise ValueError(f"Not a valid amount: {value!r}")

    raw = value.strip().replace(",", "").lstrip(CURRENCY_SYMBOL).strip()
    try:
        amount = Decimal(raw).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Not a valid amount: {value!r}") from e

    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def format_phone(digits: Optional[str]) -> str:
    """Display form of a stored phone number: "5551234567" -> "(555) 123-4567"."""
    digits = digits or ""
    if len(digits) != PHONE_DIGITS or not digits.isdigit():
        return digits
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def underscore_words(text: str) -> str:
    """Collapse whitespace runs into single underscores ("Jane  Doe" -> "Jane_Doe")."""
    return _WHITESPACE_RUN.sub("_", text.strip())


def today_in(timezone_name: str, now: Optional[datetime] = None) -> str:
    """
    Today's calendar date in the portal timezone as "YYYY-MM-DD".

    Args:
        timezone_name: IANA zone, e.g. "America/New_York"
        now: Aware datetime to convert instead of the current time
    """
    zone = ZoneInfo(timezone_name)
    current = now.astimezone(zone) if now is not None else datetime.now(zone)
    return current.date().isoformat()
