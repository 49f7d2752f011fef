"""Perkins storefront API: payment preferences, delivery scheduling, orders and product overrides."""

__version__ = "0.1.0"
