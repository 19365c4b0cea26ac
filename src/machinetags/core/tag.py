"""
Machinetags Core - Tag values and machine tag matching.

A tag is either a plain free-text tag or a machine tag of the form
``namespace:predicate=value``. Strings are classified once by
:func:`classify_tag`; everything downstream works with the typed values.

Wildcard patterns (query only) may stop after the namespace (``gem:``) or
after the predicate (``gem:name``), and accept ``*`` for the predicate or
value position (``gem:*=rails``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

NAMESPACE_DELIMITER = ":"
VALUE_DELIMITER = "="
WILDCARD = "*"

_COMPONENT = r"[^:=]+"

MACHINE_TAG_REGEX = re.compile(rf"^({_COMPONENT}):({_COMPONENT})=(.*)$", re.DOTALL)
WILDCARD_MACHINE_TAG_REGEX = re.compile(
    rf"^({_COMPONENT}):(?:({_COMPONENT})(?:=(.*))?)?$",
    re.DOTALL,
)


@dataclass(frozen=True)
class PlainTag:
    """A free-text tag."""

    name: str

    @property
    def is_machine_tag(self) -> bool:
        return False


@dataclass(frozen=True)
class MachineTag:
    """A structured ``namespace:predicate=value`` tag."""

    namespace: str
    predicate: str
    value: str

    @property
    def name(self) -> str:
        return f"{self.namespace}{NAMESPACE_DELIMITER}{self.predicate}{VALUE_DELIMITER}{self.value}"

    @property
    def is_machine_tag(self) -> bool:
        return True

    def pair(self) -> str:
        """Return the ``predicate=value`` half used by quick mode."""
        return f"{self.predicate}{VALUE_DELIMITER}{self.value}"


Tag = Union[PlainTag, MachineTag]


@dataclass(frozen=True)
class WildcardPattern:
    """Partial machine tag used to match a family of stored tags."""

    namespace: str
    predicate: str | None = None
    value: str | None = None

    def components(self) -> list[tuple[str, str]]:
        """Present components as ordered ``(field, value)`` pairs."""
        fields = [("namespace", self.namespace), ("predicate", self.predicate), ("value", self.value)]
        return [(field, value) for field, value in fields if value is not None]

    def matches(self, tag: Tag) -> bool:
        if not isinstance(tag, MachineTag):
            return False
        return all(getattr(tag, field) == value for field, value in self.components())


def parse_machine_tag(name: str) -> MachineTag | None:
    """
    Parse a full machine tag.

    Returns None unless ``name`` has a colon followed later by an equals
    sign, with a non-empty namespace and predicate. The value may be empty.

    Example:
        >>> parse_machine_tag("gem:name=rails")
        MachineTag(namespace='gem', predicate='name', value='rails')
    """
    match = MACHINE_TAG_REGEX.match(name)
    if not match:
        return None
    namespace, predicate, value = match.groups()
    return MachineTag(namespace=namespace, predicate=predicate, value=value)


def match_wildcard_machine_tag(pattern: str) -> WildcardPattern | None:
    """
    Parse a possibly partial machine tag pattern.

    ``gem:`` keeps only the namespace, ``gem:name`` adds the predicate and
    ``gem:name=rails`` carries all three. A ``*`` predicate or value, and an
    empty value, are treated as absent. The namespace is always required,
    so strings without one (or with a ``*`` namespace) are plain tags and
    yield None.
    """
    match = WILDCARD_MACHINE_TAG_REGEX.match(pattern)
    if not match:
        return None
    namespace, predicate, value = match.groups()
    if namespace == WILDCARD:
        return None
    if predicate == WILDCARD:
        predicate = None
    if value in ("", WILDCARD):
        value = None
    return WildcardPattern(namespace=namespace, predicate=predicate, value=value)


def classify_tag(name: str) -> Tag:
    """Classify a normalized tag string as a machine tag or a plain tag."""
    return parse_machine_tag(name) or PlainTag(name)
