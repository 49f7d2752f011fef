"""Tests for perkins_checkout.cart."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import Mock

import pytest

from checkout_factories import make_product
from perkins_checkout.cart import CartStore
from perkins_checkout.errors import CartError, InsufficientStock, OutOfStock, QuantityLimitExceeded


class TestCartAdd:
    """Tests for CartStore.add."""

    def test_first_add_creates_line(self, product):
        cart = CartStore()
        line = cart.add(product)
        assert line.quantity == 1
        assert cart.item_count == 1
        assert not cart.is_empty

    def test_repeated_add_increments(self, product):
        cart = CartStore()
        cart.add(product)
        line = cart.add(product)
        assert line.quantity == 2
        assert len(cart.lines) == 1

    def test_sixth_add_stays_at_four(self):
        """Adds beyond the cap are rejected and leave the line unchanged."""
        product = make_product(stock=4)
        cart = CartStore()
        for _ in range(4):
            cart.add(product)

        for _ in range(2):
            with pytest.raises(QuantityLimitExceeded) as exc_info:
                cart.add(product)
            assert exc_info.value.product_id == product.id

        line = cart.get(product.id)
        assert line.quantity == 4
        assert line.product is product

    def test_quantity_bounded_for_any_sequence(self, product):
        cart = CartStore()
        for _ in range(10):
            try:
                cart.add(product)
            except CartError:
                pass
            assert 1 <= cart.get(product.id).quantity <= 4

    def test_out_of_stock_rejected(self):
        cart = CartStore()
        with pytest.raises(OutOfStock):
            cart.add(make_product(stock=0))
        assert cart.is_empty

    def test_insufficient_stock_rejected(self):
        product = make_product(stock=2)
        cart = CartStore()
        cart.add(product)
        cart.add(product)
        with pytest.raises(InsufficientStock):
            cart.add(product)
        assert cart.get(product.id).quantity == 2

    def test_listener_fires_on_success_only(self):
        product = make_product(stock=1)
        listener = Mock()
        cart = CartStore()
        cart.subscribe(listener)

        cart.add(product)
        with pytest.raises(CartError):
            cart.add(product)

        listener.assert_called_once()
        assert listener.call_args.args[0].product_id == product.id

    def test_custom_cap(self, product):
        cart = CartStore(max_units=2)
        cart.add(product)
        cart.add(product)
        with pytest.raises(QuantityLimitExceeded):
            cart.add(product)


class TestCartMutations:
    """Tests for decrease, remove and clear."""

    def test_decrease_to_zero_removes_line(self, product):
        cart = CartStore()
        cart.add(product)
        cart.add(product)
        assert cart.decrease(product.id).quantity == 1
        assert cart.decrease(product.id) is None
        assert cart.get(product.id) is None

    def test_decrease_unknown_is_noop(self):
        assert CartStore().decrease("missing") is None

    def test_remove(self, product):
        cart = CartStore()
        cart.add(product)
        assert cart.remove(product.id) is True
        assert cart.remove(product.id) is False
        assert cart.is_empty

    def test_clear(self, product):
        cart = CartStore()
        cart.add(product)
        cart.add(make_product(id="khamrah", name="Khamrah"))
        cart.clear()
        assert cart.is_empty
        assert cart.item_count == 0


class TestCartTotals:
    def test_single_item_local_total(self, product):
        cart = CartStore()
        cart.add(product)
        assert cart.total(1200) == Decimal("21600")

    def test_subtotal_is_cost_basis(self, product):
        cart = CartStore()
        cart.add(product)
        cart.add(product)
        cart.add(make_product(id="khamrah", name="Khamrah", price=Decimal("25.5")))
        assert cart.subtotal() == Decimal("61.5")

    def test_total_rounds_each_line_up(self):
        cart = CartStore()
        cart.add(make_product(id="a", price=Decimal("10.001")))
        cart.add(make_product(id="b", price=Decimal("10.001")))
        assert cart.total(1000) == Decimal("20002")
