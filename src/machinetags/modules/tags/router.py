"""Machinetags Tags - Router.

REST API endpoints for tagging records and searching them by tag.
"""

from fastapi import APIRouter, Query, status

from machinetags.deps import require_search, require_tags
from machinetags.modules.tags.schemas import (
    RecordCreate,
    RecordListResponse,
    RecordResponse,
    RecordTagsResponse,
    TagChangeResponse,
    TagInput,
    TagListResponse,
)
from machinetags.modules.tags.service import get_tags_service

router = APIRouter(prefix="/tags", tags=["Tags"], dependencies=[require_tags])
records_router = APIRouter(prefix="/records", tags=["Records"], dependencies=[require_tags])


def get_service():
    return get_tags_service()


@router.get("", response_model=TagListResponse)
async def list_tags(namespace: str | None = Query(default=None)) -> TagListResponse:
    """List stored tags, optionally within one namespace."""
    service = get_service()
    return await service.list_tags(namespace)


@records_router.post("", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def create_record(data: RecordCreate) -> RecordResponse:
    """Create a taggable record."""
    service = get_service()
    return await service.create_record(data)


@records_router.get("", response_model=RecordListResponse, dependencies=[require_search])
async def search_records(
    tags: str = Query(default="", description="Comma delimited tags or wildcard machine tags"),
    match_all: bool | None = Query(default=None),
) -> RecordListResponse:
    """Find records tagged with any (or, with match_all, every) given tag."""
    service = get_service()
    return await service.search_records(tags, match_all)


@records_router.get("/{record_id}", response_model=RecordResponse)
async def get_record(record_id: int) -> RecordResponse:
    """Get a record and its tags."""
    service = get_service()
    return await service.get_record(record_id)


@records_router.get("/{record_id}/tags", response_model=RecordTagsResponse)
async def get_record_tags(record_id: int, quick_mode: bool = Query(default=False)) -> RecordTagsResponse:
    """Get the tags applied to a record."""
    service = get_service()
    return await service.get_record_tags(record_id, quick_mode)


@records_router.put("/{record_id}/tags", response_model=TagChangeResponse)
async def update_record_tags(record_id: int, data: TagInput) -> TagChangeResponse:
    """Replace the tags applied to a record."""
    service = get_service()
    return await service.update_record_tags(record_id, data)
