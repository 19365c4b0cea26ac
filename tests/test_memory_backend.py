"""
Tests for the in-memory expression evaluator.
"""

import pytest

from machinetags.backends.memory import MemoryBackend
from machinetags.core.expressions import Column, Eq, Raw, Select, TableRef
from machinetags.core.finder import ConditionBuilder, TaggableSchema
from machinetags.exceptions import UnsupportedExpressionException

SCHEMA = TaggableSchema(table_name="records", taggable_type="Record")


def tag(tag_id, name, namespace=None, predicate=None, value=None):
    return {"id": tag_id, "name": name, "namespace": namespace, "predicate": predicate, "value": value}


@pytest.fixture
def backend():
    """Record 1 tagged x, record 2 tagged y, record 3 tagged with both."""
    return MemoryBackend(
        {
            "records": [{"id": 1, "title": "only x"}, {"id": 2, "title": "only y"}, {"id": 3, "title": "both"}],
            "tags": [
                tag(1, "x"),
                tag(2, "y"),
                tag(3, "gem:name=rails", "gem", "name", "rails"),
                tag(4, "lang:name=ruby", "lang", "name", "ruby"),
            ],
            "taggings": [
                {"id": 1, "tag_id": 1, "taggable_type": "Record", "taggable_id": 1},
                {"id": 2, "tag_id": 2, "taggable_type": "Record", "taggable_id": 2},
                {"id": 3, "tag_id": 1, "taggable_type": "Record", "taggable_id": 3},
                {"id": 4, "tag_id": 2, "taggable_type": "Record", "taggable_id": 3},
                {"id": 5, "tag_id": 3, "taggable_type": "Record", "taggable_id": 2},
                {"id": 6, "tag_id": 4, "taggable_type": "Post", "taggable_id": 1},
            ],
        }
    )


@pytest.fixture
def builder():
    return ConditionBuilder(SCHEMA)


def ids(backend, tag_filter):
    return sorted(row["id"] for row in backend.execute(tag_filter.to_select()))


class TestMemoryBackend:
    """Evaluation of tagged-with filters."""

    def test_match_any(self, backend, builder):
        """Test any-of matching returns each record once."""
        assert ids(backend, builder.build_filter(["x", "y"])) == [1, 2, 3]

    def test_match_all(self, backend, builder):
        """Test all-of matching needs every tag on the same record."""
        assert ids(backend, builder.build_filter(["x", "y"], match_all=True)) == [3]

    def test_match_all_single_tag(self, backend, builder):
        assert ids(backend, builder.build_filter("y", match_all=True)) == [2, 3]

    def test_wildcard_namespace(self, backend, builder):
        assert ids(backend, builder.build_filter("gem:")) == [2]

    def test_wildcard_with_plain_tag_match_all(self, backend, builder):
        assert ids(backend, builder.build_filter("gem:name, y", match_all=True)) == [2]

    def test_other_taggable_types_ignored(self, backend, builder):
        """Test taggings of another type never match."""
        assert ids(backend, builder.build_filter("lang:")) == []
        assert ids(backend, builder.build_filter("lang:", match_all=True)) == []

    def test_unknown_tag(self, backend, builder):
        assert ids(backend, builder.build_filter("nope")) == []

    def test_empty_filter(self, backend, builder):
        assert ids(backend, builder.build_filter("")) == []

    def test_expression_conditions(self, backend, builder):
        """Test expression conditions are evaluated with the tag filter."""
        tag_filter = builder.build_filter(["x", "y"], conditions=Eq(Column("records", "title"), "only y"))
        assert ids(backend, tag_filter) == [2]

    def test_raw_is_unsupported(self, backend, builder):
        """Test raw SQL conditions cannot be evaluated in memory."""
        tag_filter = builder.build_filter("x", conditions="records.title = 'both'")
        with pytest.raises(UnsupportedExpressionException) as exc:
            backend.execute(tag_filter.to_select())
        assert exc.value.code == "UNSUPPORTED_EXPRESSION"

    def test_column_select_yields_values(self, backend):
        select = Select(
            table=TableRef("taggings", "tg"),
            where=Eq(Column("tg", "tag_id"), 1),
            column=Column("tg", "taggable_id"),
        )
        assert backend.execute(select) == [1, 3]

    def test_insert(self, backend, builder):
        backend.insert("records", {"id": 4, "title": "new"})
        backend.insert("taggings", {"id": 7, "tag_id": 1, "taggable_type": "Record", "taggable_id": 4})
        assert ids(backend, builder.build_filter("x")) == [1, 3, 4]
        assert len(backend.rows("records")) == 4

    def test_null_equality(self, backend):
        select = Select(table=TableRef("tags", "t"), where=Eq(Column("t", "namespace"), None))
        assert [row["name"] for row in backend.execute(select)] == ["x", "y"]

    def test_raw_node_directly(self, backend):
        with pytest.raises(UnsupportedExpressionException):
            backend.execute(Select(table=TableRef("records", "records"), where=Raw("1 = 1")))
