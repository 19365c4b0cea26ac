"""
Machinetags Tags - Schemas

Pydantic models for records, their tag lists and tag search.
"""

from typing import List

from pydantic import BaseModel, Field


# =============================================================================
# Record Schemas
# =============================================================================

class RecordCreate(BaseModel):
    """Create a taggable record."""
    title: str | None = Field(default=None, max_length=200)
    tags: str | List[str] | None = Field(default=None, description="Initial tags")


class RecordResponse(BaseModel):
    """Record with its current tags."""
    id: int
    title: str | None = None
    created_at: str | None = None
    tags: List[str] = Field(default_factory=list)


class RecordListResponse(BaseModel):
    """Records matching a tag search."""
    items: List[RecordResponse]
    total: int
    match_all: bool


# =============================================================================
# Tag List Schemas
# =============================================================================

class TagInput(BaseModel):
    """Replace a record's tags."""
    tags: str | List[str] = Field(..., description="Comma delimited string or list of tags")
    quick_mode: bool | None = Field(default=None, description="Override the configured quick mode")


class RecordTagsResponse(BaseModel):
    """Tags applied to a record."""
    record_id: int
    tags: List[str]
    quick_mode_string: str | None = None


class TagChangeResponse(RecordTagsResponse):
    """Result of replacing a record's tags."""
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)


# =============================================================================
# Stored Tag Schemas
# =============================================================================

class TagResponse(BaseModel):
    """A stored tag and how often it is used."""
    id: int
    name: str
    namespace: str | None = None
    predicate: str | None = None
    value: str | None = None
    taggings_count: int = 0


class TagListResponse(BaseModel):
    """List of stored tags."""
    items: List[TagResponse]
    total: int
