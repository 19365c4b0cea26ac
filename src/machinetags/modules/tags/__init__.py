"""
Machinetags Tags Module

Record tagging with:
- Plain and machine tags (namespace:predicate=value)
- Quick mode input for tags sharing a namespace
- Match-any / match-all search with wildcard machine tags
"""

from .router import records_router, router
from .schemas import (
    RecordCreate, RecordResponse, RecordListResponse,
    TagInput, RecordTagsResponse, TagChangeResponse,
    TagResponse, TagListResponse,
)
from .service import TagsService, get_tags_service, reset_tags_service

__all__ = [
    "router",
    "records_router",
    "TagsService",
    "get_tags_service",
    "reset_tags_service",
    "RecordCreate",
    "RecordResponse",
    "RecordListResponse",
    "TagInput",
    "RecordTagsResponse",
    "TagChangeResponse",
    "TagResponse",
    "TagListResponse",
]
