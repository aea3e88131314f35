"""Clients for third-party ingredient and product data."""
