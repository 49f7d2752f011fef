"""Tests for the API dependency container."""
from __future__ import annotations

from perkins_api.dependencies import build_container


class TestBuildContainer:
    """Provider wiring from settings."""

    def test_missing_calendar_settings_disable_calendar(self, api_settings):
        api_settings.google_private_key = None
        container = build_container(api_settings)
        assert container.calendar.is_configured is False
        assert container.mercadopago.is_configured is True

    def test_invalid_private_key_disables_calendar(self, api_settings):
        api_settings.google_private_key = "not-a-key"
        container = build_container(api_settings)
        assert container.calendar.credentials is None
        assert container.calendar.is_configured is False

    def test_order_retention_bounds_repository(self, api_settings):
        api_settings.order_retention = 25
        container = build_container(api_settings)
        assert container.orders.max_rows == 25
