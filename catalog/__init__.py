"""Catalog search and order placement service."""

__version__ = "0.1.0"
