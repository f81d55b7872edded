"""Tests for helper/columns.py - column name heuristics."""

from __future__ import annotations

from omophelper.helper.columns import generate_table_columns, table_prefix


class TestTablePrefix:
    """Short prefixes of OMOP table names."""

    def test_strips_occurrence(self) -> None:
        assert table_prefix("condition_occurrence") == "condition"

    def test_strips_exposure(self) -> None:
        assert table_prefix("drug_exposure") == "drug"

    def test_lowercases(self) -> None:
        assert table_prefix("Visit_Occurrence") == "visit"

    def test_plain_table_unchanged(self) -> None:
        assert table_prefix("measurement") == "measurement"

    def test_custom_suffixes(self) -> None:
        assert table_prefix("device_exposure", suffixes=["_occurrence"]) == "device_exposure"


class TestGenerateTableColumns:
    """Expansion of requested columns with table-prefixed variants."""

    def test_none_means_all_columns(self) -> None:
        """No requested columns leaves the fetch unfiltered."""
        assert generate_table_columns("drug_exposure", None) is None

    def test_adds_prefixed_variant(self) -> None:
        result = generate_table_columns("drug_exposure", ["start_date"])
        assert "start_date" in result
        assert "drug_start_date" in result

    def test_literal_names_first(self) -> None:
        result = generate_table_columns("condition_occurrence", ["start_date", "end_date"])
        assert result == ["start_date", "end_date", "condition_start_date", "condition_end_date"]

    def test_deduplicates(self) -> None:
        """A name that is already prefixed is not repeated."""
        result = generate_table_columns("measurement", ["value", "value", "measurement_value"])
        assert result.count("value") == 1
        assert result.count("measurement_value") == 1
        assert len(result) == len(set(result))

    def test_empty_request(self) -> None:
        assert generate_table_columns("observation", []) == []
