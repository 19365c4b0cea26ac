"""
Machinetags Core - Tagged-with condition builder.

Translates a tag list into a filter over a taggable table, either matching
records carrying any of the tags or records carrying all of them. Every tag
is read as a possible wildcard machine tag:

    builder.build_filter("something")       # tagged with 'something'
    builder.build_filter("gem:")            # any tag in namespace 'gem'
    builder.build_filter("gem:, something") # either of the two

Match-all cannot be a single join with ANDed predicates, since one joined
tagging row only ever carries one tag. Each tag instead yields the set of
record ids tagged with it, and the sets are intersected by nesting each
one inside the previous (no INTERSECT operator needed).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from machinetags.core.expressions import (
    EXPRESSION_TYPES,
    Column,
    Eq,
    Expression,
    InSet,
    Join,
    MatchNothing,
    Raw,
    Select,
    TableRef,
    and_,
    or_,
)
from machinetags.core.tag import match_wildcard_machine_tag, parse_machine_tag
from machinetags.core.tag_list import TagList
from machinetags.exceptions import InvalidConditionsException

logger = logging.getLogger(__name__)

IDENTIFIER_REGEX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TaggableSchema(BaseModel):
    """Table and column names of a taggable record type and its tag tables."""

    model_config = ConfigDict(frozen=True)

    table_name: str
    taggable_type: str
    primary_key: str = "id"
    tags_table: str = "tags"
    taggings_table: str = "taggings"

    @field_validator("table_name", "primary_key", "tags_table", "taggings_table")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not IDENTIFIER_REGEX.match(value):
            raise ValueError(f"'{value}' is not a valid SQL identifier")
        return value

    @property
    def taggings_alias(self) -> str:
        return f"{self.table_name}_taggings"

    @property
    def tags_alias(self) -> str:
        return f"{self.table_name}_tags"


class FinderOptions(BaseModel):
    """Options for a tagged-with query."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    match_all: bool = False
    conditions: Any = None


@dataclass(frozen=True)
class TagFilter:
    """Condition over a taggable table, plus whether it needs the tag joins."""

    condition: Expression
    schema: TaggableSchema
    join_tags: bool = False

    @property
    def is_empty(self) -> bool:
        """True for the filter of an empty tag list, which selects nothing."""
        return isinstance(self.condition, MatchNothing)

    def to_select(self) -> Select:
        """Outer ``SELECT DISTINCT <table>.*`` applying this filter."""
        schema = self.schema
        table = TableRef(schema.table_name, schema.table_name)
        joins: tuple[Join, ...] = ()

        if self.join_tags:
            taggings = TableRef(schema.taggings_table, schema.taggings_alias)
            tags = TableRef(schema.tags_table, schema.tags_alias)
            joins = (
                Join(
                    taggings,
                    and_(
                        Eq(Column(taggings.alias, "taggable_id"), Column(table.alias, schema.primary_key)),
                        Eq(Column(taggings.alias, "taggable_type"), schema.taggable_type),
                    ),
                ),
                Join(tags, Eq(Column(tags.alias, "id"), Column(taggings.alias, "tag_id"))),
            )

        return Select(table=table, where=self.condition, joins=joins, distinct=True)


class ConditionBuilder:
    """Builds tagged-with filters for one taggable schema."""

    def __init__(self, schema: TaggableSchema):
        self.schema = schema

    def build_filter(self, tags: Any, options: FinderOptions | None = None, **overrides: Any) -> TagFilter:
        """
        Build the filter for ``tags``.

        Args:
            tags: TagList, delimited string or sequence of tag names
            options: match mode and extra conditions (ANDed with the tag filter)

        Returns:
            TagFilter; for an empty tag list its condition is MatchNothing,
            never an unfiltered match.
        """
        options = options or FinderOptions()
        if overrides:
            options = options.model_copy(update=overrides)

        tag_list = tags if isinstance(tags, TagList) else TagList(tags)
        if tag_list.empty:
            logger.debug(f"[finder] empty tag list for {self.schema.table_name}, matching nothing")
            return TagFilter(condition=MatchNothing(), schema=self.schema)

        conditions: list[Expression] = []
        if options.conditions is not None:
            conditions.append(self.extra_condition(options.conditions))
        conditions.append(self.condition_from_tags(tag_list, options))

        mode = "match_all" if options.match_all else "match_any"
        logger.debug(f"[finder] {mode} filter for {len(tag_list)} tag(s) on {self.schema.table_name}")
        return TagFilter(
            condition=and_(*conditions),
            schema=self.schema,
            join_tags=not options.match_all,
        )

    def condition_from_tags(self, tags: TagList, options: FinderOptions) -> Expression:
        if options.match_all:
            return self.match_all_filter(tags)
        return self.match_any_filter(tags)

    def predicate_for_tag(self, tag: str) -> Expression:
        """
        Condition on the joined tags table for a single tag.

        Wildcard machine tags compare only the components they carry;
        anything else compares the full tag name. A partial pattern such
        as ``http://example.com`` is also a valid plain tag, so it matches
        either way.
        """
        alias = self.schema.tags_alias
        name_matches = Eq(Column(alias, "name"), tag)
        pattern = match_wildcard_machine_tag(tag)
        if not pattern:
            return name_matches
        components = and_(*[Eq(Column(alias, field), value) for field, value in pattern.components()])
        if parse_machine_tag(tag):
            return components
        return or_(components, name_matches)

    def match_any_filter(self, tags: TagList) -> Expression:
        return or_(*[self.predicate_for_tag(tag) for tag in tags])

    def tagged_ids_select(self, tag: str, within: Select | None = None) -> Select:
        """
        Ids of records tagged with ``tag``.

        With ``within``, the ids are further restricted to those ``within``
        yields, which is how match-all intersects the per-tag sets.
        """
        schema = self.schema
        taggings = TableRef(schema.taggings_table, schema.taggings_alias)
        tags = TableRef(schema.tags_table, schema.tags_alias)
        taggable_id = Column(taggings.alias, "taggable_id")

        where: list[Expression] = [
            Eq(Column(taggings.alias, "taggable_type"), schema.taggable_type),
            self.predicate_for_tag(tag),
        ]
        if within is not None:
            where.append(InSet(taggable_id, within))

        return Select(
            table=taggings,
            joins=(Join(tags, Eq(Column(taggings.alias, "tag_id"), Column(tags.alias, "id"))),),
            where=and_(*where),
            column=taggable_id,
        )

    def match_all_filter(self, tags: TagList) -> Expression:
        # Innermost select belongs to the last tag; each preceding tag wraps it.
        chain: Select | None = None
        for tag in reversed(tags.to_string_list()):
            chain = self.tagged_ids_select(tag, within=chain)
        return InSet(Column(self.schema.table_name, self.schema.primary_key), chain)

    def extra_condition(self, conditions: Any) -> Expression:
        """Turn caller supplied extra conditions into an expression."""
        if isinstance(conditions, EXPRESSION_TYPES):
            return conditions
        if isinstance(conditions, str):
            return Raw(conditions)
        if isinstance(conditions, (list, tuple)) and conditions and isinstance(conditions[0], str):
            sql, *params = conditions
            if len(params) == 1 and isinstance(params[0], (list, tuple)):
                params = list(params[0])
            return Raw(sql, tuple(params))
        raise InvalidConditionsException(
            details={"type": type(conditions).__name__},
        )
