"""
Tests for CartStore / WishlistStore: merging, notifications, totals, cart cap.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from storefront.errors import NotFoundError
from storefront.models import CartItem, CatalogProduct, WishlistItem
from storefront.stores import CartStore, WishlistStore, add_product_to_cart, wishlist_item_for


@pytest.fixture
def cart() -> CartStore:
    return CartStore(tax_rate_percent=18.0)


def _item(item_id: str = "p1", **kw) -> CartItem:
    kw.setdefault("name", "Widget")
    kw.setdefault("price", 10.0)
    return CartItem(item_id=item_id, **kw)


def test_add_same_id_merges_quantity(cart: CartStore) -> None:
    cart.add(_item(quantity=2))
    cart.add(_item(quantity=3))
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5


def test_add_keeps_insertion_order(cart: CartStore) -> None:
    cart.add(_item("b"))
    cart.add(_item("a"))
    cart.add(_item("b"))
    assert [i.item_id for i in cart.items] == ["b", "a"]


def test_add_notifies_once_after_mutation(cart: CartStore) -> None:
    seen = []
    cart.subscribe(lambda store: seen.append(store.total_quantity))
    cart.add(_item(quantity=2))
    assert seen == [2]


def test_observers_called_in_subscription_order(cart: CartStore) -> None:
    order = []
    cart.subscribe(lambda s: order.append("first"))
    cart.subscribe(lambda s: order.append("second"))
    cart.add(_item())
    assert order == ["first", "second"]


def test_unsubscribe_stops_notifications(cart: CartStore) -> None:
    listener = MagicMock()
    sub = cart.subscribe(listener)
    cart.add(_item())
    sub.cancel()
    cart.add(_item())
    assert listener.call_count == 1


def test_remove_absent_id_does_not_notify(cart: CartStore) -> None:
    listener = MagicMock()
    cart.add(_item())
    cart.subscribe(listener)
    cart.remove("nope")
    listener.assert_not_called()
    cart.remove("p1")
    listener.assert_called_once_with(cart)
    assert cart.is_empty


def test_update_quantity_absent_raises(cart: CartStore) -> None:
    with pytest.raises(NotFoundError):
        cart.update_quantity("missing", 3)


def test_update_quantity_sets_exact_value(cart: CartStore) -> None:
    cart.add(_item(quantity=1, discount_price=8.0, image="img.png"))
    cart.update_quantity("p1", 3)
    item = cart.get("p1")
    assert item.quantity == 3
    assert item.discount_price == 8.0
    assert item.image == "img.png"
    assert item.name == "Widget"


def test_update_quantity_rejects_zero(cart: CartStore) -> None:
    cart.add(_item())
    with pytest.raises(ValueError):
        cart.update_quantity("p1", 0)
    assert cart.get("p1").quantity == 1


def test_cart_item_rejects_zero_quantity() -> None:
    with pytest.raises(ValueError):
        CartItem(item_id="x", name="x", price=1.0, quantity=0)


def test_clear_notifies_once(cart: CartStore) -> None:
    cart.add(_item("a"))
    cart.add(_item("b"))
    listener = MagicMock()
    cart.subscribe(listener)
    cart.clear()
    assert cart.is_empty
    listener.assert_called_once()


def test_bill_scenario() -> None:
    cart = CartStore(tax_rate_percent=18.0)
    cart.add(CartItem(item_id="a", name="A", price=100.0, discount_percent=10.0, quantity=2))
    cart.add(CartItem(item_id="b", name="B", price=50.0, discount_price=40.0, quantity=1))

    assert cart.subtotal == pytest.approx(220.0)
    assert cart.total_discount == pytest.approx(30.0)
    assert cart.tax_amount == pytest.approx(39.6)
    assert cart.final_total == pytest.approx(259.6)
    assert cart.total_quantity == 3


def test_empty_cart_totals(cart: CartStore) -> None:
    assert cart.subtotal == 0
    assert cart.tax_amount == 0
    assert cart.final_total == 0


def test_tax_rate_is_configurable(cart: CartStore) -> None:
    cart.add(_item(price=100.0))
    cart.set_tax_rate(5)
    assert cart.tax_amount == pytest.approx(5.0)
    assert cart.final_total == pytest.approx(105.0)


def test_store_wide_discount(cart: CartStore) -> None:
    cart.add(_item(price=100.0))
    cart.set_tax_rate(10)
    cart.set_discount_percent(20)
    assert cart.store_discount_amount == pytest.approx(20.0)
    assert cart.tax_amount == pytest.approx(8.0)
    assert cart.final_total == pytest.approx(88.0)


def test_total_with_shipping(cart: CartStore) -> None:
    cart.set_tax_rate(0)
    cart.add(_item(price=10.0))
    assert cart.total_with_shipping(fee=5.0, free_threshold=100.0) == pytest.approx(15.0)
    cart.update_quantity("p1", 10)
    assert cart.total_with_shipping(fee=5.0, free_threshold=100.0) == pytest.approx(100.0)


def test_can_add_respects_unit_cap(cart: CartStore) -> None:
    cart.add(_item(quantity=8))
    assert cart.can_add(2)
    assert not cart.can_add(3)
    assert not cart.can_add(0)


def test_unseen_count(cart: CartStore) -> None:
    cart.add(_item(quantity=2))
    cart.add(_item("other"))
    assert cart.unseen_count == 3
    cart.mark_seen()
    assert cart.unseen_count == 0
    assert cart.total_quantity == 3


def _product(**card) -> CatalogProduct:
    card.setdefault("productName", "Shoe")
    card.setdefault("price", "₹100")
    return CatalogProduct.from_card(card, index=4)


def test_add_product_to_cart_expands_per_unit(cart: CartStore) -> None:
    product = _product(discountPercent="10")
    assert add_product_to_cart(cart, product, quantity=3)
    assert [i.item_id for i in cart.items] == ["product_4_0", "product_4_1", "product_4_2"]
    assert all(i.quantity == 1 for i in cart.items)
    assert cart.items[0].currency_symbol == "₹"
    assert cart.subtotal == pytest.approx(270.0)


def test_add_product_to_cart_rejects_over_cap(cart: CartStore) -> None:
    cart.add(_item(quantity=9))
    listener = MagicMock()
    cart.subscribe(listener)
    assert not add_product_to_cart(cart, _product(), quantity=2)
    listener.assert_not_called()
    assert cart.total_quantity == 9


def test_add_product_to_cart_rejects_sold_out(cart: CartStore) -> None:
    assert not add_product_to_cart(cart, _product(quantity="0"))
    assert cart.is_empty


def test_wishlist_add_is_idempotent() -> None:
    wl = WishlistStore()
    listener = MagicMock()
    wl.subscribe(listener)
    wl.add(WishlistItem(item_id="p1", name="A", price=1.0))
    wl.add(WishlistItem(item_id="p1", name="A again", price=2.0))
    assert len(wl.items) == 1
    assert wl.items[0].name == "A"
    listener.assert_called_once_with(wl)


def test_wishlist_remove_and_toggle() -> None:
    wl = WishlistStore()
    item = wishlist_item_for(_product(discountPrice="₹80"))
    assert wl.toggle(item) is True
    assert wl.contains("product_4")
    assert wl.items[0].effective_price == pytest.approx(80.0)
    assert wl.toggle(item) is False
    assert wl.is_empty


def test_wishlist_clear() -> None:
    wl = WishlistStore()
    wl.add(WishlistItem(item_id="a", name="A", price=1.0))
    wl.add(WishlistItem(item_id="b", name="B", price=1.0))
    assert wl.unseen_count == 2
    wl.clear()
    assert wl.is_empty
    assert wl.unseen_count == 0
