"""Machinetags Store - persistence of records, tags and taggings."""

from machinetags.store.sqlite import SqliteTagStore

__all__ = ["SqliteTagStore"]
