import html
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import bleach

_WHITESPACE = re.compile(r"\s+")
_ANGLE_BRACKETS = re.compile(r"[<>]")


def sanitize_input(value: Optional[str]) -> str:
    """Clean free text typed by a customer or owner before it is stored.

    - Decodes HTML entities once, so escaped markup is treated as markup
    - Strips HTML tags using bleach.clean(..., strip=True)
    - Drops NULL bytes and any angle brackets left after cleaning
    - Collapses runs of whitespace and trims the ends
    """
    if value is None:
        return ""
    val = html.unescape(value.replace("\x00", ""))
    val = bleach.clean(val, tags=[], strip=True)
    # bleach escapes what it keeps; stored text holds the characters themselves, minus < and >
    val = _ANGLE_BRACKETS.sub("", html.unescape(val))
    return _WHITESPACE.sub(" ", val).strip()


# Money is kept at 2 decimals, half-up, everywhere it is persisted

def round_amount(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_price(value) -> str:
    return f"₹{round_amount(Decimal(value)):,.2f}"
