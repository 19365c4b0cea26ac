"""
Machinetags Core - tag parsing and tagged-with query construction.

Pure, storage-independent components:
- tag: plain/machine tag values and wildcard pattern matching
- tag_list: normalization of raw tag input (standard and quick mode)
- tag_sync: removed/added diff for persisting a tag list
- expressions: backend-neutral filter expression tree
- finder: match-any / match-all condition builder
"""

from machinetags.core.finder import ConditionBuilder, FinderOptions, TaggableSchema, TagFilter
from machinetags.core.tag import (
    MachineTag,
    PlainTag,
    Tag,
    WildcardPattern,
    classify_tag,
    match_wildcard_machine_tag,
    parse_machine_tag,
)
from machinetags.core.tag_list import TagList, TagListOptions
from machinetags.core.tag_sync import TagChangeSet, compute_added, compute_removed

__all__ = [
    "ConditionBuilder",
    "FinderOptions",
    "TaggableSchema",
    "TagFilter",
    "MachineTag",
    "PlainTag",
    "Tag",
    "WildcardPattern",
    "classify_tag",
    "match_wildcard_machine_tag",
    "parse_machine_tag",
    "TagList",
    "TagListOptions",
    "TagChangeSet",
    "compute_added",
    "compute_removed",
]
