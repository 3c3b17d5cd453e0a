"""
Cart and wishlist state.

Both stores own their item list outright and hand out tuples of frozen items.
Observers subscribe through `subscribe()` and are called synchronously, in
subscription order, after a mutation has been fully applied. Operations that
change nothing do not notify.
"""
from dataclasses import replace
from typing import Callable, List, Tuple

from . import config, pricing
from .errors import NotFoundError
from .logger import get_logger
from .models import CartItem, CatalogProduct, WishlistItem
from .observable import EventStream, Subscription

logger = get_logger(__name__)


class _Store:
    def __init__(self, name: str):
        self._changes: EventStream = EventStream(name)
        self._unseen = 0

    def subscribe(self, listener: Callable[["_Store"], None]) -> Subscription:
        return self._changes.subscribe(listener)

    def unsubscribe(self, listener: Callable[["_Store"], None]) -> None:
        self._changes.unsubscribe(listener)

    def _notify(self) -> None:
        self._changes.publish(self)

    @property
    def unseen_count(self) -> int:
        """Units added since the last mark_seen(); backs the badge count."""
        return self._unseen

    def mark_seen(self) -> None:
        if self._unseen:
            self._unseen = 0
            self._notify()


class CartStore(_Store):
    MAX_CART_UNITS = config.MAX_CART_UNITS

    def __init__(self, tax_rate_percent: float = config.GST_PERCENT, discount_percent: float = 0.0):
        super().__init__("cart")
        self._items: List[CartItem] = []
        self._tax_rate_percent = tax_rate_percent
        self._discount_percent = discount_percent

    @property
    def items(self) -> Tuple[CartItem, ...]:
        return tuple(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def tax_rate_percent(self) -> float:
        return self._tax_rate_percent

    @property
    def discount_percent(self) -> float:
        return self._discount_percent

    def set_tax_rate(self, percent: float) -> None:
        self._tax_rate_percent = max(0.0, float(percent))
        self._notify()

    def set_discount_percent(self, percent: float) -> None:
        self._discount_percent = min(100.0, max(0.0, float(percent)))
        self._notify()

    def _index_of(self, item_id: str) -> int:
        for idx, it in enumerate(self._items):
            if it.item_id == item_id:
                return idx
        return -1

    def contains(self, item_id: str) -> bool:
        return self._index_of(item_id) >= 0

    def get(self, item_id: str) -> CartItem:
        idx = self._index_of(item_id)
        if idx < 0:
            raise NotFoundError(f"Cart has no item {item_id!r}")
        return self._items[idx]

    def add(self, item: CartItem) -> None:
        idx = self._index_of(item.item_id)
        if idx >= 0:
            existing = self._items[idx]
            self._items[idx] = replace(existing, quantity=existing.quantity + item.quantity)
        else:
            self._items.append(item)
        self._unseen += item.quantity
        logger.debug("Cart add %s x%d (%d units total)", item.item_id, item.quantity, self.total_quantity)
        self._notify()

    def remove(self, item_id: str) -> None:
        before = len(self._items)
        self._items = [it for it in self._items if it.item_id != item_id]
        if len(self._items) != before:
            self._notify()

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set the quantity of an existing line. Use remove() to drop a line."""
        idx = self._index_of(item_id)
        if idx < 0:
            raise NotFoundError(f"Cart has no item {item_id!r}")
        if quantity < 1:
            raise ValueError(
                f"Quantity for {item_id!r} must be >= 1 (got {quantity}); call remove() instead"
            )
        self._items[idx] = replace(self._items[idx], quantity=quantity)
        self._notify()

    def clear(self) -> None:
        self._items.clear()
        self._unseen = 0
        self._notify()

    # Derived totals

    @property
    def total_quantity(self) -> int:
        return sum(it.quantity for it in self._items)

    def can_add(self, quantity: int = 1) -> bool:
        return quantity >= 1 and self.total_quantity + quantity <= self.MAX_CART_UNITS

    @property
    def subtotal(self) -> float:
        return pricing.subtotal(self._items)

    @property
    def total_discount(self) -> float:
        return sum(((it.price - it.effective_price) * it.quantity for it in self._items), 0.0)

    @property
    def store_discount_amount(self) -> float:
        return self.subtotal * self._discount_percent / 100

    @property
    def taxable_amount(self) -> float:
        return self.subtotal - self.store_discount_amount

    @property
    def tax_amount(self) -> float:
        return pricing.tax_amount(self.taxable_amount, self._tax_rate_percent)

    @property
    def final_total(self) -> float:
        return self.taxable_amount + self.tax_amount

    def total_with_shipping(
        self,
        fee: float = config.SHIPPING_FEE,
        free_threshold: float = config.FREE_SHIPPING_THRESHOLD,
    ) -> float:
        return pricing.shipping_adjusted_total(self.final_total, fee, free_threshold)


class WishlistStore(_Store):
    def __init__(self):
        super().__init__("wishlist")
        self._items: List[WishlistItem] = []

    @property
    def items(self) -> Tuple[WishlistItem, ...]:
        return tuple(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def contains(self, item_id: str) -> bool:
        return any(it.item_id == item_id for it in self._items)

    def add(self, item: WishlistItem) -> None:
        if self.contains(item.item_id):
            return
        self._items.append(item)
        self._unseen += 1
        self._notify()

    def remove(self, item_id: str) -> None:
        before = len(self._items)
        self._items = [it for it in self._items if it.item_id != item_id]
        if len(self._items) != before:
            self._notify()

    def toggle(self, item: WishlistItem) -> bool:
        """Add if absent, remove if present. Returns True when the item ends up wishlisted."""
        if self.contains(item.item_id):
            self.remove(item.item_id)
            return False
        self.add(item)
        return True

    def clear(self) -> None:
        self._items.clear()
        self._unseen = 0
        self._notify()


def add_product_to_cart(cart: CartStore, product: CatalogProduct, quantity: int = 1) -> bool:
    """
    Product-card "Add to Cart": one cart line per unit (`<productId>_<n>`),
    priced from the product's effective price. Rejected (returns False)
    when the product is sold out or the cart would exceed MAX_CART_UNITS.
    """
    if product.sold_out:
        logger.info("Not adding %s to cart: sold out", product.product_id)
        return False
    if not cart.can_add(quantity):
        logger.info(
            "Not adding %d x %s to cart: limit of %d units (have %d)",
            quantity, product.product_id, cart.MAX_CART_UNITS, cart.total_quantity,
        )
        return False

    for n in range(quantity):
        cart.add(
            CartItem(
                item_id=f"{product.product_id}_{n}",
                name=product.name,
                price=product.base_price,
                discount_price=product.discount_price if product.discount_price < product.base_price else 0.0,
                discount_percent=product.discount_percent,
                quantity=1,
                image=product.image,
                currency_symbol=product.currency_symbol,
            )
        )
    return True


def wishlist_item_for(product: CatalogProduct) -> WishlistItem:
    return WishlistItem(
        item_id=product.product_id,
        name=product.name,
        price=product.base_price,
        discount_price=product.effective_price if product.has_discount else 0.0,
        image=product.image,
        currency_symbol=product.currency_symbol,
    )
