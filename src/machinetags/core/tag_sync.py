"""
Machinetags Core - Tag set diffing for persistence.

The store applies a record's new tag list in two steps: drop the taggings
no longer wanted, then add the missing ones. Both steps are computed here
as pure functions so the store can apply them inside one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from machinetags.core.tag_list import TagList, TagListOptions


def _as_tag_list(raw: Any, options: TagListOptions | None) -> TagList:
    if isinstance(raw, TagList):
        return raw
    return TagList(raw, options)


def compute_removed(current: Any, desired: Any, options: TagListOptions | None = None) -> TagList:
    """Tags currently applied that the desired list no longer contains."""
    return _as_tag_list(current, options) - _as_tag_list(desired, options)


def compute_added(current: Any, desired: Any, options: TagListOptions | None = None) -> TagList:
    """Tags in the desired list that are not applied yet, in desired order."""
    return _as_tag_list(desired, options) - _as_tag_list(current, options)


@dataclass(frozen=True)
class TagChangeSet:
    """Removals and additions needed to move from one tag list to another."""

    removed: TagList
    added: TagList

    @classmethod
    def between(cls, current: Any, desired: Any, options: TagListOptions | None = None) -> "TagChangeSet":
        return cls(
            removed=compute_removed(current, desired, options),
            added=compute_added(current, desired, options),
        )

    @property
    def is_noop(self) -> bool:
        return not self.removed and not self.added
