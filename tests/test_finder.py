"""
Tests for the tagged-with condition builder.
"""

import pytest

from machinetags.core.expressions import (
    And,
    Column,
    Eq,
    InSet,
    MatchNothing,
    Or,
    Raw,
    Select,
)
from machinetags.core.finder import ConditionBuilder, FinderOptions, TaggableSchema
from machinetags.core.tag_list import TagList
from machinetags.exceptions import InvalidConditionsException


@pytest.fixture
def builder():
    return ConditionBuilder(TaggableSchema(table_name="records", taggable_type="Record"))


def name_eq(tag):
    return Eq(Column("records_tags", "name"), tag)


class TestTaggableSchema:
    """Schema naming tests."""

    def test_aliases(self):
        schema = TaggableSchema(table_name="urls", taggable_type="Url")
        assert schema.taggings_alias == "urls_taggings"
        assert schema.tags_alias == "urls_tags"

    def test_rejects_bad_identifiers(self):
        """Test table names that are not identifiers are refused."""
        with pytest.raises(ValueError):
            TaggableSchema(table_name="records; DROP TABLE tags", taggable_type="Record")


class TestPredicateForTag:
    """Per-tag predicate derivation."""

    def test_plain_tag_compares_name(self, builder):
        assert builder.predicate_for_tag("ruby") == name_eq("ruby")

    def test_namespace_pattern(self, builder):
        """Test a partial pattern also matches a plain tag of the same name."""
        assert builder.predicate_for_tag("gem:") == Or(
            (Eq(Column("records_tags", "namespace"), "gem"), name_eq("gem:"))
        )

    def test_predicate_pattern(self, builder):
        """Test only the components present are compared, as one group."""
        assert builder.predicate_for_tag("gem:name") == Or(
            (
                And(
                    (
                        Eq(Column("records_tags", "namespace"), "gem"),
                        Eq(Column("records_tags", "predicate"), "name"),
                    )
                ),
                name_eq("gem:name"),
            )
        )

    def test_colon_bearing_plain_tag(self, builder):
        """Test a plain tag containing one colon can still be matched by name."""
        predicate = builder.predicate_for_tag("http://example.com")
        assert isinstance(predicate, Or)
        assert predicate.operands[1] == name_eq("http://example.com")

    def test_full_machine_tag(self, builder):
        predicate = builder.predicate_for_tag("gem:name=rails")
        assert isinstance(predicate, And)
        assert [op.left.name for op in predicate.operands] == ["namespace", "predicate", "value"]
        assert [op.right for op in predicate.operands] == ["gem", "name", "rails"]

    def test_star_predicate(self, builder):
        predicate = builder.predicate_for_tag("gem:*=rails")
        assert [op.left.name for op in predicate.operands] == ["namespace", "value"]


class TestBuildFilter:
    """build_filter tests."""

    @pytest.mark.parametrize("tags", [[], "", None, TagList()])
    def test_empty_tags_match_nothing(self, builder, tags):
        """Test an empty tag list never becomes an unfiltered query."""
        tag_filter = builder.build_filter(tags, match_all=False)
        assert tag_filter.is_empty
        assert tag_filter.condition == MatchNothing()

    def test_empty_tags_ignore_other_options(self, builder):
        tag_filter = builder.build_filter([], FinderOptions(match_all=True, conditions="title = 'x'"))
        assert tag_filter.is_empty

    def test_match_any_is_disjunction(self, builder):
        """Test match-any ORs one equality per tag."""
        tag_filter = builder.build_filter(["x", "y"])
        assert tag_filter.condition == Or((name_eq("x"), name_eq("y")))
        assert tag_filter.join_tags is True
        assert not tag_filter.is_empty

    def test_match_any_single_tag(self, builder):
        assert builder.build_filter("x").condition == name_eq("x")

    def test_match_all_nests_identifier_sets(self, builder):
        """Test match-all chains per-tag id sets, last tag innermost."""
        tag_filter = builder.build_filter(["x", "y", "z"], match_all=True)
        assert tag_filter.join_tags is False

        outer = tag_filter.condition
        assert isinstance(outer, InSet)
        assert outer.column == Column("records", "id")

        expected_tags = ["x", "y", "z"]
        select = outer.select
        for position, tag in enumerate(expected_tags):
            assert isinstance(select, Select)
            assert select.column == Column("records_taggings", "taggable_id")
            operands = select.where.operands
            assert operands[0] == Eq(Column("records_taggings", "taggable_type"), "Record")
            assert operands[1] == name_eq(tag)
            if position < len(expected_tags) - 1:
                assert isinstance(operands[2], InSet)
                assert operands[2].column == Column("records_taggings", "taggable_id")
                select = operands[2].select
            else:
                assert len(operands) == 2

    def test_match_all_with_wildcards(self, builder):
        tag_filter = builder.build_filter("gem:, lang:name", match_all=True)
        first = tag_filter.condition.select.where.operands[1]
        assert first.operands[0] == Eq(Column("records_tags", "namespace"), "gem")

    def test_conditions_are_anded(self, builder):
        """Test extra conditions are ANDed ahead of the tag filter."""
        tag_filter = builder.build_filter("x", FinderOptions(conditions="records.title = 'a'"))
        assert tag_filter.condition == And((Raw("records.title = 'a'"), name_eq("x")))

    def test_expression_conditions_pass_through(self, builder):
        condition = Eq(Column("records", "title"), "a")
        tag_filter = builder.build_filter("x", conditions=condition)
        assert tag_filter.condition.operands[0] is condition

    def test_raw_tag_input_is_not_quick_mode(self, builder):
        """Test query input is parsed with standard rules."""
        tag_filter = builder.build_filter("gem:a=1, b")
        assert tag_filter.condition.operands[1] == name_eq("b")


class TestExtraCondition:
    """extra_condition tests."""

    def test_sql_with_params(self, builder):
        assert builder.extra_condition(("records.title = ?", "a")) == Raw("records.title = ?", ("a",))

    def test_sql_with_param_list(self, builder):
        assert builder.extra_condition(["records.id IN (?, ?)", [1, 2]]) == Raw("records.id IN (?, ?)", (1, 2))

    def test_invalid(self, builder):
        with pytest.raises(InvalidConditionsException) as exc:
            builder.extra_condition(42)
        assert exc.value.code == "INVALID_CONDITIONS"
