"""
Machinetags Core - Tag list normalization.

A TagList turns heterogeneous tag input (delimited strings, sequences,
quoted values, quick mode shorthand) into an ordered collection of tag
names. With ``no_duplicates`` (the default) the first occurrence of a tag
wins and later repeats are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict

from machinetags.core.tag import (
    NAMESPACE_DELIMITER,
    VALUE_DELIMITER,
    MachineTag,
    Tag,
    classify_tag,
)
from machinetags.exceptions import AmbiguousQuickModeExportException, MalformedQuickModeInputException

logger = logging.getLogger(__name__)

DELIMITER = ","
QUOTE_CHARS = "\"'"


class TagListOptions(BaseModel):
    """Options controlling how raw tag input is normalized."""

    model_config = ConfigDict(frozen=True)

    quick_mode: bool = False
    no_duplicates: bool = True


def split_delimited(text: str) -> list[str]:
    """
    Split on commas that sit outside quotes.

    A quote only opens a quoted segment at the start of a token, so
    apostrophes inside words are left alone. The returned tokens are raw,
    see :func:`clean_token`.
    """
    tokens: list[str] = []
    buffer: list[str] = []
    quote: str | None = None

    for char in text:
        if quote:
            buffer.append(char)
            if char == quote:
                quote = None
        elif char in QUOTE_CHARS and not "".join(buffer).strip():
            quote = char
            buffer.append(char)
        elif char == DELIMITER:
            tokens.append("".join(buffer))
            buffer = []
        else:
            buffer.append(char)

    tokens.append("".join(buffer))
    return tokens


def clean_token(token: str) -> str:
    """Trim surrounding whitespace and quote characters."""
    return token.strip().strip(QUOTE_CHARS).strip()


def _quote_if_needed(text: str) -> str:
    return f'"{text}"' if DELIMITER in text else text


def _raw_items(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, TagList):
        return raw.to_string_list()
    if isinstance(raw, Iterable):
        return [item if isinstance(item, str) else str(item) for item in raw if item is not None]
    return [str(raw)]


def expand_quick_mode(text: str) -> list[str]:
    """
    Expand quick mode shorthand into full machine tags.

    ``gem:name=rails,version=2`` becomes ``gem:name=rails`` and
    ``gem:version=2``. A segment whose colon comes before any equals sign
    opens a new namespace group.

    Raises:
        MalformedQuickModeInputException: missing namespace prefix, or a
            segment that is not a ``predicate=value`` pair
    """
    tags: list[str] = []
    namespace: str | None = None

    for token in split_delimited(text):
        segment = clean_token(token)
        if not segment:
            continue

        colon = segment.find(NAMESPACE_DELIMITER)
        equals = segment.find(VALUE_DELIMITER)
        if colon != -1 and (equals == -1 or colon < equals):
            namespace, segment = segment[:colon], segment[colon + 1 :]
            if not namespace.strip():
                raise MalformedQuickModeInputException(text, "empty namespace")

        if namespace is None:
            raise MalformedQuickModeInputException(text, "missing leading 'namespace:' prefix")

        # Segment ends are already trimmed; inner whitespace belongs to the tag.
        predicate, delimiter, value = segment.partition(VALUE_DELIMITER)
        if not delimiter or not predicate.strip():
            raise MalformedQuickModeInputException(text, f"expected 'predicate=value', got '{segment}'")

        tags.append(MachineTag(namespace, predicate, value).name)

    return tags


class TagList:
    """
    Ordered, normalized collection of tag names.

    Examples:
        >>> TagList('"foo, bar", baz').to_string_list()
        ['foo, bar', 'baz']
        >>> TagList.parse("gem:foo=1,bar=2", quick_mode=True).to_string_list()
        ['gem:foo=1', 'gem:bar=2']
    """

    def __init__(self, raw: Any = None, options: TagListOptions | None = None):
        self.options = options or TagListOptions()
        self._tags: list[str] = []
        self.add(raw)

    @classmethod
    def parse(cls, raw: Any, options: TagListOptions | None = None, **overrides: bool) -> "TagList":
        """Parse raw input, letting keyword flags override ``options``."""
        options = options or TagListOptions()
        if overrides:
            options = options.model_copy(update=overrides)
        return cls(raw, options)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, *raw: Any) -> "TagList":
        """Normalize and append raw tag input."""
        for item in raw:
            for name in self._normalize(item):
                if self.options.no_duplicates and name in self._tags:
                    continue
                self._tags.append(name)
        return self

    def remove(self, name: str) -> "TagList":
        """Remove every occurrence of ``name``."""
        self._tags = [tag for tag in self._tags if tag != name]
        return self

    def _normalize(self, raw: Any) -> list[str]:
        names: list[str] = []
        for item in _raw_items(raw):
            if self.options.quick_mode:
                names.extend(expand_quick_mode(item))
            elif isinstance(raw, str):
                names.extend(clean_token(token) for token in split_delimited(item))
            else:
                names.append(clean_token(item))
        names = [name for name in names if name]
        logger.debug(f"[tag_list] normalized {len(names)} tag(s) quick_mode={self.options.quick_mode}")
        return names

    # -------------------------------------------------------------------------
    # Container protocol
    # -------------------------------------------------------------------------

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __bool__(self) -> bool:
        return bool(self._tags)

    def __contains__(self, name: object) -> bool:
        return name in self._tags

    def __getitem__(self, index: int) -> str:
        return self._tags[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TagList):
            return self._tags == other._tags
        if isinstance(other, (list, tuple)):
            return self._tags == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __sub__(self, other: Any) -> "TagList":
        """Tags in this list that are absent from ``other``, in this list's order."""
        excluded = set(other if isinstance(other, TagList) else TagList(other))
        result = TagList(options=self.options)
        result._tags = [tag for tag in self._tags if tag not in excluded]
        return result

    def __repr__(self) -> str:
        return f"TagList({self._tags!r})"

    def __str__(self) -> str:
        return self.to_string()

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def empty(self) -> bool:
        return not self._tags

    def to_string_list(self) -> list[str]:
        return list(self._tags)

    def to_string(self) -> str:
        """Render as a delimited string that parses back to the same list."""
        return ", ".join(_quote_if_needed(tag) for tag in self._tags)

    def classified(self) -> list[Tag]:
        return [classify_tag(name) for name in self._tags]

    def namespaces(self) -> list[str]:
        """Distinct machine tag namespaces in first-seen order."""
        seen: list[str] = []
        for tag in self.classified():
            if isinstance(tag, MachineTag) and tag.namespace not in seen:
                seen.append(tag.namespace)
        return seen

    def to_quick_mode_string(self) -> str:
        """
        Render the list as ``namespace:pred1=val1,pred2=val2``.

        Only defined for machine tags sharing one namespace; anything else
        raises AmbiguousQuickModeExportException rather than dropping tags.
        """
        tags = self.classified()
        if not tags:
            return ""

        plain = [tag.name for tag in tags if not isinstance(tag, MachineTag)]
        namespaces = self.namespaces()
        if plain or len(namespaces) != 1:
            raise AmbiguousQuickModeExportException(namespaces=namespaces, plain_tags=plain)

        first, *rest = tags
        segments = [_quote_if_needed(first.name)]
        segments.extend(_quote_if_needed(tag.pair()) for tag in rest)
        return DELIMITER.join(segments)
