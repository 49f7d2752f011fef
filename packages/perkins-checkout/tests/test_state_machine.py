"""Tests for perkins_checkout.state_machine."""
from __future__ import annotations

from datetime import date

import pytest

from checkout_factories import fill_shipping
from perkins_checkout.cart import CartStore
from perkins_checkout.errors import InvalidTransition, ValidationError
from perkins_checkout.models import PaymentMethod, Region, ShippingConfig
from perkins_checkout.session import CheckoutSession
from perkins_checkout.state_machine import (
    REQUIRED_SHIPPING_FIELDS,
    CheckoutStateMachine,
    CheckoutStep,
    validate_shipping,
)


def _session_at_shipping(product) -> CheckoutSession:
    session = CheckoutSession()
    session.cart.add(product)
    session.machine.advance()
    return session


class TestCartGuard:
    """Tests for the Cart -> Shipping transition."""

    def test_empty_cart_blocks_advance(self):
        machine = CheckoutStateMachine(CartStore())
        result = machine.advance()
        assert result.accepted is False
        assert result.step is CheckoutStep.CART
        assert result.message_for("cart") == "Your cart is empty."

    def test_non_empty_cart_advances(self, product):
        cart = CartStore()
        cart.add(product)
        machine = CheckoutStateMachine(cart)
        result = machine.advance()
        assert result.accepted
        assert machine.step is CheckoutStep.SHIPPING


class TestShippingGuard:
    """Tests for the Shipping -> Payment transition."""

    def test_all_fields_present_advances(self, product):
        session = _session_at_shipping(product)
        fill_shipping(session)
        result = session.machine.advance()
        assert result.accepted
        assert session.step is CheckoutStep.PAYMENT

    @pytest.mark.parametrize("field_name", sorted(REQUIRED_SHIPPING_FIELDS))
    def test_any_single_empty_field_blocks(self, product, field_name):
        session = _session_at_shipping(product)
        empty = None if field_name == "delivery_date" else "   "
        fill_shipping(session, **{field_name: empty})

        result = session.machine.advance()

        assert result.accepted is False
        assert session.step is CheckoutStep.SHIPPING
        assert [e.field for e in result.errors] == [field_name]
        assert result.message_for(field_name) == REQUIRED_SHIPPING_FIELDS[field_name]

    def test_cash_outside_caba_blocks(self, product):
        session = _session_at_shipping(product)
        fill_shipping(session, region=Region.INTERIOR, payment_method=PaymentMethod.CASH)
        result = session.machine.advance()
        assert not result.accepted
        assert result.message_for("payment_method")

    def test_validate_shipping_reports_every_missing_field(self):
        errors = validate_shipping(ShippingConfig())
        assert {e.field for e in errors} == set(REQUIRED_SHIPPING_FIELDS)


class TestTransitions:
    """Tests for back, confirm and undefined events."""

    def test_back_from_shipping(self, product):
        session = _session_at_shipping(product)
        session.machine.back()
        assert session.step is CheckoutStep.CART

    def test_back_from_cart_is_undefined(self):
        machine = CheckoutStateMachine(CartStore())
        with pytest.raises(InvalidTransition):
            machine.back()

    def test_advance_from_payment_is_undefined(self, session_at_payment):
        session = session_at_payment()
        with pytest.raises(InvalidTransition):
            session.machine.advance()

    def test_confirm_only_from_payment(self, product):
        session = _session_at_shipping(product)
        with pytest.raises(InvalidTransition):
            session.machine.begin_confirm()

    def test_complete_submission_failure_stays_on_payment(self, session_at_payment):
        session = session_at_payment()
        assert session.machine.complete_submission(success=False) is CheckoutStep.PAYMENT

    def test_complete_submission_success_returns_to_cart(self, session_at_payment):
        session = session_at_payment()
        assert session.machine.complete_submission(success=True) is CheckoutStep.CART


class TestUpdateShipping:
    """Tests for shipping data mutation."""

    def test_rejected_in_cart_step(self):
        machine = CheckoutStateMachine(CartStore())
        with pytest.raises(InvalidTransition):
            machine.update_shipping(full_name="Ana")

    def test_coerces_enum_values(self, product):
        session = _session_at_shipping(product)
        shipping = session.machine.update_shipping(region="interior", payment_method="cash")
        assert shipping.region is Region.INTERIOR
        assert shipping.payment_method is PaymentMethod.CASH

    def test_invalid_values_leave_config_unchanged(self, product):
        session = _session_at_shipping(product)
        with pytest.raises(ValidationError) as exc_info:
            session.machine.update_shipping(full_name="Ana", region="mars", colour="red")
        assert {e.field for e in exc_info.value.errors} == {"region", "colour"}
        assert session.shipping.full_name == ""

    def test_parses_iso_delivery_date(self, product):
        session = _session_at_shipping(product)
        shipping = session.machine.update_shipping(delivery_date="2024-01-03")
        assert shipping.delivery_date == date(2024, 1, 3)

    def test_blank_delivery_date_is_unset(self, product):
        session = _session_at_shipping(product)
        assert session.machine.update_shipping(delivery_date="  ").delivery_date is None

    def test_unparseable_delivery_date_is_field_error(self, product):
        session = _session_at_shipping(product)
        with pytest.raises(ValidationError) as exc_info:
            session.machine.update_shipping(delivery_date="next tuesday")
        assert [e.field for e in exc_info.value.errors] == ["delivery_date"]
        assert session.shipping.delivery_date is None
