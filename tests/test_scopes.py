"""
tests/test_scopes.py
Unit tests for modelgen.scopes (rule-based local scope generation).
"""

from __future__ import annotations

from typing import List

import pytest

from modelgen.models import Column, GeneratorConfig
from modelgen.scopes import ScopeGenerator, ScopeMethod, scope_name_from_column


def _names(scopes: List[ScopeMethod]) -> List[str]:
    return [s.name for s in scopes]


@pytest.fixture()
def generator() -> ScopeGenerator:
    return ScopeGenerator()


# ===========================================================================
# Toggle
# ===========================================================================


class TestScopeToggle:

    def test_disabled_by_default(self, generator: ScopeGenerator, post_columns: List[Column]) -> None:
        assert generator.generate_scopes(post_columns) == []

    def test_enabled_through_config(self, post_columns: List[Column]) -> None:
        config = GeneratorConfig(model_properties={"auto_generate_scopes": True})
        assert ScopeGenerator(config).generate_scopes(post_columns) != []

    def test_explicit_flag_overrides_config(self, post_columns: List[Column]) -> None:
        config = GeneratorConfig(model_properties={"auto_generate_scopes": True})
        assert ScopeGenerator(config).generate_scopes(post_columns, enabled=False) == []


# ===========================================================================
# Column rules
# ===========================================================================


class TestColumnRules:

    def test_post_columns(self, generator: ScopeGenerator, post_columns: List[Column]) -> None:
        scopes = generator.generate_column_scopes(post_columns)
        assert _names(scopes) == [
            "ByUser",
            "SearchTitle",
            "Draft",
            "Published",
            "ViewsGreaterThan",
            "ViewsLessThan",
            "ViewsBetween",
            "Recent",
            "PublishedAtBetween",
            "PublishedAtAfter",
            "PublishedAtBefore",
        ]

    def test_primary_and_timestamp_columns_skipped(
        self, generator: ScopeGenerator, post_columns: List[Column]
    ) -> None:
        columns = {s.column for s in generator.generate_column_scopes(post_columns)}
        assert not columns & {"id", "created_at", "updated_at", "deleted_at"}

    def test_boolean_pattern_names(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="is_active", type="tinyint(1)"))
        assert _names(scopes) == ["Active", "Inactive"]
        assert "public function scopeActive($query)" in scopes[0].code
        assert "return $query->where('is_active', true);" in scopes[0].code
        assert "return $query->where('is_active', false);" in scopes[1].code

    def test_boolean_camel_pattern_is_studly(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="is_featured", type="boolean"))
        assert _names(scopes) == ["Featured", "NotFeatured"]

    def test_boolean_fallback_names(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="is_premium", type="boolean"))
        assert _names(scopes) == ["Premium", "NotPremium"]

    def test_boolean_name_on_integer(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="has_children", type="integer"))
        assert _names(scopes) == ["HasChildren", "NotHasChildren"]
        assert all(s.kind == "boolean" for s in scopes)

    def test_boolean_name_on_text_is_not_boolean(self, generator: ScopeGenerator) -> None:
        assert generator.classify(Column(name="is_active", type="varchar")) == []

    def test_enum_values(self, generator: ScopeGenerator) -> None:
        column = Column(name="state", type="enum", type_extra="enum('on_hold','shipped')")
        scopes = generator.classify(column)
        assert _names(scopes) == ["OnHold", "Shipped"]
        assert "return $query->where('state', 'on_hold');" in scopes[0].code

    def test_status_column(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="order_status", type="varchar"))
        assert _names(scopes) == ["ByOrderStatus"]
        assert "public function scopeByOrderStatus($query, $status)" in scopes[0].code

    def test_date_column(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="birthday", type="date"))
        assert _names(scopes) == ["Recent", "BirthdayBetween", "BirthdayAfter", "BirthdayBefore"]
        assert "public function scopeRecent($query, $days = 30)" in scopes[0].code
        assert "whereBetween('birthday', [$startDate, $endDate])" in scopes[1].code

    def test_foreign_key(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="author_id", type="bigint"))
        assert _names(scopes) == ["ByAuthor"]
        assert "return $query->where('author_id', $id);" in scopes[0].code

    def test_searchable(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="email", type="varchar(255)"))
        assert _names(scopes) == ["SearchEmail"]
        assert "'LIKE', '%' . $search . '%'" in scopes[0].code

    def test_numeric(self, generator: ScopeGenerator) -> None:
        scopes = generator.classify(Column(name="price", type="decimal(8,2)"))
        assert _names(scopes) == ["PriceGreaterThan", "PriceLessThan", "PriceBetween"]

    def test_unclassified(self, generator: ScopeGenerator) -> None:
        assert generator.classify(Column(name="settings", type="json")) == []
        assert generator.classify(Column(name="password", type="varchar")) == []

    def test_custom_status_patterns(self) -> None:
        config = GeneratorConfig(model_properties={"status_column_patterns": ["phase"]})
        generator = ScopeGenerator(config)
        assert _names(generator.classify(Column(name="phase", type="varchar"))) == ["ByPhase"]
        assert generator.classify(Column(name="kind", type="varchar")) == []


# ===========================================================================
# Timestamp scopes & de-duplication
# ===========================================================================


class TestTimestampScopes:

    @pytest.mark.parametrize(
        "column, label",
        [
            ("created_at", "Created"),
            ("published_at", "Published"),
            ("expiry_date", "Expiry"),
            ("timestamp", "Timestamp"),
        ],
    )
    def test_scope_name_from_column(self, column: str, label: str) -> None:
        assert scope_name_from_column(column) == label

    def test_four_scopes_per_column(self, generator: ScopeGenerator) -> None:
        scopes = generator.generate_timestamp_scopes([Column(name="created_at", type="timestamp")])
        assert _names(scopes) == [
            "CreatedRecently",
            "CreatedToday",
            "LatestCreated",
            "OldestCreated",
        ]
        assert "public function scopeCreatedRecently($query, $days = 7)" in scopes[0].code
        assert "whereDate('created_at', today())" in scopes[1].code
        assert "orderBy('created_at', 'desc')" in scopes[2].code
        assert "orderBy('created_at', 'asc')" in scopes[3].code

    def test_datetime_name_without_datetime_type(self, generator: ScopeGenerator) -> None:
        scopes = generator.generate_timestamp_scopes([Column(name="expires_at", type="varchar")])
        assert _names(scopes)[0] == "ExpiresRecently"

    def test_timestamp_scopes_can_be_disabled(self, post_columns: List[Column]) -> None:
        config = GeneratorConfig(model_properties={"auto_generate_timestamp_scopes": False})
        scopes = ScopeGenerator(config).generate_scopes(post_columns, enabled=True)
        assert all(s.kind != "timestamp" for s in scopes)

    def test_full_run_includes_timestamps(
        self, generator: ScopeGenerator, post_columns: List[Column]
    ) -> None:
        names = _names(generator.generate_scopes(post_columns, enabled=True))
        assert "LatestCreated" in names
        assert "DeletedToday" in names
        assert "PublishedRecently" in names

    def test_duplicates_keep_first(self, generator: ScopeGenerator) -> None:
        columns = [
            Column(name="starts_on", type="date"),
            Column(name="ends_on", type="date"),
        ]
        scopes = generator.generate_scopes(columns, enabled=True, primary_keys=[])
        recent = [s for s in scopes if s.name == "Recent"]
        assert len(recent) == 1
        assert recent[0].column == "starts_on"
        assert len(_names(scopes)) == len(set(_names(scopes)))
