"""Machinetags Modules - All application modules."""

from machinetags.modules.tags import records_router, router as tags_router

__all__ = [
    "records_router",
    "tags_router",
]
