import math
import re
from typing import Optional

# "$899 - $1199", "$899 – $1199", "899 to 1199"
_RANGE_SPLIT = re.compile(r"\s*[-–—]\s*|\s*to\s*", re.IGNORECASE)

# "From $999", "Starting at $999", "ab 999 €", "à partir de 999 €"
_LEADING_QUALIFIER = re.compile(r"^(from|starting\s+at|ab|à\s+partir\s+de)\s*", re.IGNORECASE)

_NON_NUMERIC = re.compile(r"[^0-9.,]")

# 1.234,56
_EU_GROUPED = re.compile(r"^\d+\.\d{3},\d{1,2}$")
# 682,49
_EU_DECIMAL = re.compile(r"^\d+,\d{1,2}$")

_LEADING_FLOAT = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def _is_european(cleaned: str) -> bool:
    """
    Decide whether `cleaned` (digits, dots and commas only) uses the
    European convention: dot for thousands, comma for decimals.
    """
    last_dot = cleaned.rfind(".")
    last_comma = cleaned.rfind(",")

    if last_comma > last_dot:
        # Comma is the last separator: "1.234,56" or "682,49" (but not "1,234,567")
        if len(cleaned[last_comma + 1:]) <= 2:
            return True
    elif last_dot > last_comma:
        # "1.234" is read as 1234, never as 1.234 with three decimals
        after_dot = cleaned[last_dot + 1:]
        if len(after_dot) == 3 and cleaned.count(".") == 1 and cleaned.count(",") == 0:
            return True

    if _EU_GROUPED.match(cleaned):
        return True
    if _EU_DECIMAL.match(cleaned) and "." not in cleaned:
        return True
    return False


def _leading_float(s: str) -> float:
    m = _LEADING_FLOAT.match(s)
    if not m:
        return 0.0
    try:
        value = float(m.group(0))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_price(price: Optional[str]) -> float:
    """
    Converts a localized display price to a number in its own currency.

    Handles:
      - "$1,234.56"     -> 1234.56  (US: comma thousands, dot decimal)
      - "1.234,56 €"    -> 1234.56  (European: dot thousands, comma decimal)
      - "₹1234"         -> 1234
      - "¥123,456"      -> 123456
      - "$899 - $1199"  -> 899      (first price of a range)
      - "From $999"     -> 999

    Never raises; anything unparseable gives 0.
    """
    if not price:
        return 0.0

    working = _RANGE_SPLIT.split(str(price))[0].strip()
    working = _LEADING_QUALIFIER.sub("", working)

    cleaned = _NON_NUMERIC.sub("", working)
    if not cleaned:
        return 0.0

    if _is_european(cleaned):
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    else:
        cleaned = cleaned.replace(",", "")

    return _leading_float(cleaned)


def calculate_discount(current_price: Optional[str], original_price: Optional[str]) -> Optional[str]:
    """
    "$899" vs "$999" -> "10% off". None when there is no real markdown.
    """
    current = parse_price(current_price)
    original = parse_price(original_price)
    if current <= 0 or original <= current:
        return None
    return f"{math.floor((1 - current / original) * 100 + 0.5)}% off"
