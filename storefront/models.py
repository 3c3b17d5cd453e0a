from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from . import pricing

CATALOG_CHANGED = "catalog-changed"
CONFIG_CHANGED = "config-changed"

# Channel message types and the change kind each one signals.
SYNC_MESSAGE_KINDS = {
    "home-page": CATALOG_CHANGED,
    "catalog-changed": CATALOG_CHANGED,
    "dynamic-update": CONFIG_CHANGED,
    "config-changed": CONFIG_CHANGED,
}


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s if s else default


def _int(value: Any, default: int) -> int:
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return default


@dataclass(frozen=True)
class CatalogProduct:
    """
    One product card from the admin-configured catalog.
    Raw strings are kept as the backend sent them; amounts are derived.
    """
    product_id: str
    name: str
    raw_price: str
    raw_discount_price: str = ""
    discount_percent: float = 0.0
    currency_hint: str = ""
    stock_quantity: int = 10
    rating: str = "4.0"
    image: str = ""

    @classmethod
    def from_card(cls, card: Mapping[str, Any], index: int = 0) -> "CatalogProduct":
        raw_price = None
        for key in ("price", "basePrice", "currentPrice", "productPrice"):
            if card.get(key) is not None:
                raw_price = card.get(key)
                break

        return cls(
            product_id=_text(card.get("id") or card.get("_id"), f"product_{index}"),
            name=_text(card.get("productName") or card.get("name"), "Product"),
            raw_price=_text(raw_price, "99.99"),
            raw_discount_price=_text(card.get("discountPrice")),
            discount_percent=pricing.parse_price(card.get("discountPercent")),
            currency_hint=_text(card.get("currencySymbol") or card.get("currencyCode")),
            stock_quantity=_int(card.get("quantity"), 10),
            rating=_text(card.get("rating"), "4.0"),
            image=_text(card.get("imageAsset") or card.get("image")),
        )

    @property
    def base_price(self) -> float:
        return pricing.parse_price(self.raw_price)

    @property
    def discount_price(self) -> float:
        return pricing.parse_price(self.raw_discount_price)

    @property
    def currency_symbol(self) -> str:
        hint = self.currency_hint
        if hint and hint in pricing.CURRENCY_SYMBOLS:
            return hint
        if hint:
            return pricing.currency_symbol_from_code(hint)
        return pricing.detect_currency_symbol(self.raw_price)

    @property
    def effective_price(self) -> float:
        return pricing.effective_price(self.base_price, self.discount_price, self.discount_percent)

    @property
    def has_discount(self) -> bool:
        return self.discount_percent > 0 or 0 < self.discount_price < self.base_price

    @property
    def sold_out(self) -> bool:
        return self.stock_quantity <= 0


@dataclass(frozen=True)
class CartItem:
    item_id: str
    name: str
    price: float
    discount_price: float = 0.0  # 0 means no override
    discount_percent: float = 0.0
    quantity: int = 1
    image: str = ""
    currency_symbol: str = pricing.DEFAULT_SYMBOL

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"Cart item {self.item_id!r} needs quantity >= 1, got {self.quantity}")

    @property
    def effective_price(self) -> float:
        return pricing.unit_price(self)

    @property
    def total_price(self) -> float:
        return pricing.line_total(self)


@dataclass(frozen=True)
class WishlistItem:
    item_id: str
    name: str
    price: float
    discount_price: float = 0.0
    image: str = ""
    currency_symbol: str = pricing.DEFAULT_SYMBOL

    @property
    def effective_price(self) -> float:
        return pricing.effective_price(self.price, self.discount_price)


@dataclass(frozen=True)
class SyncEvent:
    kind: str  # catalog-changed | config-changed
    tenant_id: Optional[str]
    payload: Any = None

    @classmethod
    def from_message(cls, message: Any, tenant_id: Optional[str]) -> Optional["SyncEvent"]:
        """Map a raw `updates` message to a change event; None if it isn't one."""
        if not isinstance(message, Mapping):
            return None
        msg_type = _text(message.get("type")).lower()
        kind = SYNC_MESSAGE_KINDS.get(msg_type)
        if kind is None:
            return None
        return cls(kind=kind, tenant_id=tenant_id, payload=message.get("data", message))


DEFAULT_STORE_INFO: Dict[str, str] = {
    "store_name": "My Store",
    "address": "123 Main St",
    "email": "support@example.com",
    "phone": "(123) 456-7890",
    "header_color": "#4fb322",
    "banner_text": "Welcome to our store!",
    "banner_button_text": "Shop Now",
}


@dataclass(frozen=True)
class Snapshot:
    """
    Full pulled catalog + store configuration. `source` tags which backend
    shape it came from ("form", "dynamic") or "default" when nothing loaded.
    """
    store_name: str = DEFAULT_STORE_INFO["store_name"]
    address: str = DEFAULT_STORE_INFO["address"]
    email: str = DEFAULT_STORE_INFO["email"]
    phone: str = DEFAULT_STORE_INFO["phone"]
    header_color: str = DEFAULT_STORE_INFO["header_color"]
    banner_text: str = DEFAULT_STORE_INFO["banner_text"]
    banner_button_text: str = DEFAULT_STORE_INFO["banner_button_text"]
    products: Tuple[CatalogProduct, ...] = field(default_factory=tuple)
    tenant_id: Optional[str] = None
    source: str = "default"

    @property
    def is_default(self) -> bool:
        return self.source == "default"

    def product(self, product_id: str) -> Optional[CatalogProduct]:
        for p in self.products:
            if p.product_id == product_id:
                return p
        return None
