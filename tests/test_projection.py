"""Tests for the projection stage."""

import pytest
from unittest.mock import patch

from contracts import FilterCriteria
from pipeline import (
    apply_filters,
    build_snapshot,
    clamp_limit,
    describe_fields,
    limit_items,
    load_document,
    to_count,
    to_envelope,
    to_field_schema,
    to_items,
)


@pytest.fixture
def snapshot(project_document):
    return build_snapshot(load_document(project_document))


class TestClampLimit:
    """Out-of-range limits are clamped, never rejected."""

    def test_in_range_is_unchanged(self):
        decision = clamp_limit(10, maximum=50)
        assert decision.effective == 10
        assert not decision.clamped

    def test_above_maximum_clamps(self, caplog):
        with caplog.at_level("WARNING"):
            decision = clamp_limit(80, maximum=50)
        assert decision.effective == 50
        assert decision.clamped
        assert "out of range" in caplog.text

    @pytest.mark.parametrize("requested", [0, -5])
    def test_non_positive_becomes_one(self, requested):
        assert clamp_limit(requested, maximum=50).effective == 1

    def test_hard_ceiling_applies_to_configured_maximum(self):
        assert clamp_limit(500, maximum=1000).effective == 100

    def test_default_maximum_from_settings(self):
        with patch("pipeline.projection.settings") as mock_settings:
            mock_settings.max_output_limit = 7
            assert clamp_limit(20).effective == 7


class TestProjections:
    """Envelope, item list and count views of one snapshot."""

    def test_count_matches_items(self, snapshot):
        filtered = apply_filters(snapshot, FilterCriteria(status="Ready"))
        assert to_count(filtered) == len(to_items(filtered)) == 2

    def test_envelope_scenario(self, snapshot):
        filtered = apply_filters(snapshot, FilterCriteria(assignee="alice"))
        doc = to_envelope(filtered).to_document()
        assert doc["project"] == "Platform Roadmap"
        assert doc["totalItems"] == 4
        assert doc["filteredCount"] == 2
        assert doc["filters"]["assignee"] == "alice"
        assert doc["filters"]["status"] is None
        assert [i["id"] for i in doc["filteredItems"]] == ["PVTI_1", "PVTI_2"]
        assert "limit" not in doc

    def test_envelope_count_always_matches(self, snapshot):
        for criteria in (FilterCriteria(), FilterCriteria(repository="web"), FilterCriteria(priority="P3")):
            envelope = to_envelope(apply_filters(snapshot, criteria))
            assert envelope.filtered_count == len(envelope.filtered_items)
            assert envelope.filtered_count <= envelope.total_items

    def test_empty_result_is_valid(self, snapshot):
        doc = to_envelope(apply_filters(snapshot, FilterCriteria(repository="nope"))).to_document()
        assert doc["filteredItems"] == []
        assert doc["filteredCount"] == 0
        assert doc["totalItems"] == 4

    def test_items_view_is_filtered_items(self, snapshot):
        filtered = apply_filters(snapshot, FilterCriteria(repository="api"))
        assert to_items(filtered) == to_envelope(filtered).filtered_items


class TestLimitItems:
    """limit_items keeps a prefix and reports the effective limit."""

    def test_prefix_in_order(self, snapshot):
        limited = limit_items(snapshot, 2, maximum=50)
        assert [i.id for i in limited.items] == ["PVTI_1", "PVTI_2"]
        assert limited.total_items == 4

    def test_limit_larger_than_items(self, snapshot):
        assert len(limit_items(snapshot, 40, maximum=50).items) == 4

    def test_envelope_reports_effective_limit(self, snapshot):
        doc = to_envelope(limit_items(snapshot, 0, maximum=50)).to_document()
        assert doc["limit"] == 1
        assert doc["filteredCount"] == 1

    def test_limited_count(self, snapshot):
        assert to_count(limit_items(snapshot, 3, maximum=2)) == 2


class TestFieldSchemaProjection:
    """to_field_schema renders a schema document."""

    def test_schema_document(self, project_document):
        doc = to_field_schema(describe_fields(project_document))
        assert doc["project"] == "Platform Roadmap"
        assert doc["fields"][2] == {"name": "Priority", "kind": "single_select", "options": ["P1", "P2"]}
        assert doc["fields"][4] == {"name": "Sprint", "kind": "iteration"}
