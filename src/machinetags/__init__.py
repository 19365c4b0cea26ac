"""Machinetags - machine tag parsing and tagged-with queries."""

__version__ = "0.4.0"
