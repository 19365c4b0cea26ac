"""
Machinetags Tags - Service

Business logic for tagging records and searching them by tag.
"""

import logging
import time

from machinetags.config import get_settings
from machinetags.core.finder import FinderOptions
from machinetags.core.tag_list import TagList, TagListOptions
from machinetags.exceptions import MachineTagsException
from machinetags.observability.metrics import MetricsStore, get_metrics_store
from machinetags.store.sqlite import SqliteTagStore
from .schemas import (
    RecordCreate, RecordResponse, RecordListResponse,
    TagInput, RecordTagsResponse, TagChangeResponse,
    TagResponse, TagListResponse,
)

logger = logging.getLogger(__name__)


def _audit(action: str, entity_type: str, entity_id: int, details: dict | None = None):
    """Log an audit entry."""
    logger.info(f"[AUDIT] {action} {entity_type} {entity_id} {details or {}}")


class TagsService:
    """
    Tags records and finds them again.

    Every call builds its options explicitly from the configured defaults
    plus any per-request override.
    """

    def __init__(
        self,
        store: SqliteTagStore,
        tag_list_options: TagListOptions | None = None,
        finder_options: FinderOptions | None = None,
        metrics: MetricsStore | None = None,
    ):
        self.store = store
        self.tag_list_options = tag_list_options or TagListOptions()
        self.finder_options = finder_options or FinderOptions()
        self.metrics = metrics or get_metrics_store()

    def _parse(self, raw, quick_mode: bool | None = None) -> TagList:
        options = self.tag_list_options
        if quick_mode is not None:
            options = options.model_copy(update={"quick_mode": quick_mode})
        tag_list = TagList(raw, options)
        self.metrics.record_parse(options.quick_mode, len(tag_list))
        return tag_list

    def _record_response(self, record: dict) -> RecordResponse:
        record_id = record[self.store.schema.primary_key]
        return RecordResponse(
            id=record_id,
            title=record.get("title"),
            created_at=record.get("created_at"),
            tags=self.store.get_tag_list(record_id).to_string_list(),
        )

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    async def create_record(self, data: RecordCreate) -> RecordResponse:
        """Create a record, applying any initial tags."""
        tag_list = self._parse(data.tags) if data.tags is not None else None
        record_id = self.store.create_record(data.title)
        if tag_list:
            self.store.save_tags(record_id, tag_list)
        _audit("create", "record", record_id, {"title": data.title})
        return self._record_response(self.store.get_record(record_id))

    async def get_record(self, record_id: int) -> RecordResponse:
        return self._record_response(self.store.get_record(record_id))

    # -------------------------------------------------------------------------
    # Tag lists
    # -------------------------------------------------------------------------

    async def get_record_tags(self, record_id: int, quick_mode: bool = False) -> RecordTagsResponse:
        """Tags of a record, optionally rendered as a quick mode string."""
        tag_list = self.store.get_tag_list(record_id)
        return RecordTagsResponse(
            record_id=record_id,
            tags=tag_list.to_string_list(),
            quick_mode_string=tag_list.to_quick_mode_string() if quick_mode else None,
        )

    async def update_record_tags(self, record_id: int, data: TagInput) -> TagChangeResponse:
        """Replace a record's tags and report what changed."""
        tag_list = self._parse(data.tags, data.quick_mode)
        changes = self.store.save_tags(record_id, tag_list)
        _audit(
            "update_tags", "record", record_id,
            {"added": changes.added.to_string_list(), "removed": changes.removed.to_string_list()},
        )
        return TagChangeResponse(
            record_id=record_id,
            tags=self.store.get_tag_list(record_id).to_string_list(),
            added=changes.added.to_string_list(),
            removed=changes.removed.to_string_list(),
        )

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search_records(self, tags: str | list[str] | None, match_all: bool | None = None) -> RecordListResponse:
        """Records tagged with any (or all) of ``tags``."""
        options = self.finder_options
        if match_all is not None:
            options = options.model_copy(update={"match_all": match_all})
        mode = "match_all" if options.match_all else "match_any"

        tag_list = self._parse(tags, quick_mode=False)
        if tag_list.empty:
            self.metrics.record_empty_filter(mode)
            return RecordListResponse(items=[], total=0, match_all=options.match_all)

        start_time = time.time()
        try:
            records = self.store.find_tagged_with(tag_list, options)
        except MachineTagsException as e:
            self.metrics.record_query_error(mode, e.code)
            raise
        self.metrics.record_query_latency(mode, (time.time() - start_time) * 1000)

        items = [self._record_response(record) for record in records]
        items.sort(key=lambda r: r.id)
        return RecordListResponse(items=items, total=len(items), match_all=options.match_all)

    async def list_tags(self, namespace: str | None = None) -> TagListResponse:
        items = [TagResponse(**row) for row in self.store.list_tags(namespace)]
        return TagListResponse(items=items, total=len(items))


# =============================================================================
# Singleton
# =============================================================================

_tags_service: TagsService | None = None


def get_tags_service() -> TagsService:
    """Get the tags service singleton."""
    global _tags_service
    if _tags_service is None:
        settings = get_settings()
        store = SqliteTagStore(
            database_path=settings.store.database_path,
            schema=settings.store.taggable_schema(),
            options=settings.tagging.tag_list_options(),
        )
        store.create_schema()
        _tags_service = TagsService(
            store,
            tag_list_options=settings.tagging.tag_list_options(),
            finder_options=settings.tagging.finder_options(),
        )
    return _tags_service


def reset_tags_service() -> None:
    """Drop the singleton so the next call rebuilds it from settings."""
    global _tags_service
    if _tags_service is not None:
        _tags_service.store.close()
    _tags_service = None
