"""
Price arithmetic shared by product cards, the cart and the wishlist.

Everything here is a pure function over floats and strings. None of it raises:
garbage in gives 0.0 (or the default symbol) out, so bill computation is
deterministic and safe to call from any render path.
"""
import math
import re
from typing import Any, Iterable

DEFAULT_SYMBOL = "$"

# Checked in this order when a string carries more than one glyph.
CURRENCY_SYMBOLS = ("₹", "$", "€", "£", "¥", "₩", "₽", "₦", "₨")

CURRENCY_CODES = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "KRW": "₩",
    "RUB": "₽",
    "NGN": "₦",
    "PKR": "₨",
    "LKR": "₨",
    "NPR": "₨",
}

_NON_NUMERIC = re.compile(r"[^0-9.]")


def _as_amount(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def parse_price(text: Any) -> float:
    """
    Extract the numeric amount from a price label such as "₹1,299.50" or
    "USD 12". Only digits and the first decimal point survive; anything that
    still doesn't parse is 0.0.
    """
    if text is None or isinstance(text, bool):
        return 0.0
    if isinstance(text, (int, float)):
        return _as_amount(text)

    cleaned = _NON_NUMERIC.sub("", str(text))
    head, sep, tail = cleaned.partition(".")
    cleaned = head + sep + tail.replace(".", "")
    if not cleaned or cleaned == ".":
        return 0.0
    return _as_amount(cleaned)


def detect_currency_symbol(text: Any) -> str:
    if not text:
        return DEFAULT_SYMBOL
    s = str(text)
    for sym in CURRENCY_SYMBOLS:
        if sym in s:
            return sym
    return DEFAULT_SYMBOL


def currency_symbol_from_code(code: Any) -> str:
    if not code:
        return DEFAULT_SYMBOL
    return CURRENCY_CODES.get(str(code).strip().upper(), DEFAULT_SYMBOL)


def format_price(amount: Any, symbol: str = DEFAULT_SYMBOL) -> str:
    return f"{symbol}{_as_amount(amount):.2f}"


def discount_from_percent(base: Any, percent: Any) -> float:
    return _as_amount(base) * (1 - _as_amount(percent) / 100)


def effective_price(base: Any, discount_price: Any = 0.0, discount_percent: Any = 0.0) -> float:
    """
    Unit price actually charged.

    A percent discount always wins over a manual discount price; the manual
    price only applies when it is positive and below the base price.
    """
    base = _as_amount(base)
    discount_price = _as_amount(discount_price)
    discount_percent = _as_amount(discount_percent)

    if discount_percent > 0:
        return max(0.0, discount_from_percent(base, min(discount_percent, 100.0)))
    if 0 < discount_price < base:
        return discount_price
    return base


def unit_price(item: Any) -> float:
    return effective_price(
        getattr(item, "price", 0.0),
        getattr(item, "discount_price", 0.0),
        getattr(item, "discount_percent", 0.0),
    )


def line_total(item: Any) -> float:
    return unit_price(item) * _as_amount(getattr(item, "quantity", 1))


def subtotal(items: Iterable[Any]) -> float:
    return sum((line_total(it) for it in items), 0.0)


def tax_amount(subtotal_amount: Any, rate_percent: Any) -> float:
    return _as_amount(subtotal_amount) * _as_amount(rate_percent) / 100


def shipping_adjusted_total(total: Any, fee: Any, free_threshold: Any = 100.0) -> float:
    total = _as_amount(total)
    if total >= _as_amount(free_threshold):
        return total
    return total + _as_amount(fee)
