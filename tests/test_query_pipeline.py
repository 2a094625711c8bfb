"""Tests for the query pipeline.

Runs whole invocations, from fetched document to JSON-ready result.
"""

import pytest

from contracts import FilterCriteria
from orchestrator import OutputView, QueryPipeline, run_query
from pipeline import InvalidDocumentError, MalformedItemError, UnknownFacetError


class TestQueryPipelineInit:
    """Test pipeline configuration."""

    def test_defaults_from_settings(self):
        pipeline = QueryPipeline()
        assert pipeline.skip_malformed is True
        assert pipeline.max_output_limit == 50

    def test_overrides(self):
        pipeline = QueryPipeline(skip_malformed=False, max_output_limit=5)
        assert pipeline.skip_malformed is False
        assert pipeline.max_output_limit == 5


class TestRun:
    """QueryPipeline.run produces each output view."""

    def test_envelope_without_criteria(self, project_document):
        doc = QueryPipeline().run(project_document)
        assert doc["totalItems"] == doc["filteredCount"] == 4
        assert doc["filters"] == {
            "repository": None,
            "assignee": None,
            "status": None,
            "priority": None,
            "fields": {},
        }

    def test_filtered_envelope(self, project_document):
        doc = QueryPipeline().run(project_document, criteria=FilterCriteria(repository="api", status="Ready"))
        assert [i["id"] for i in doc["filteredItems"]] == ["PVTI_3"]
        assert doc["filteredItems"][0]["fields"] == {"Status": "Ready"}

    def test_count_view(self, project_document):
        assert QueryPipeline().run(project_document, criteria=FilterCriteria(priority="P1"), view=OutputView.COUNT) == 2

    def test_items_view_sorted_and_limited(self, project_document):
        items = QueryPipeline().run(
            project_document,
            sort="Size",
            descending=True,
            view=OutputView.ITEMS,
            limit=2,
        )
        assert [i["id"] for i in items] == ["PVTI_2", "PVTI_1"]

    def test_limit_clamped_to_pipeline_maximum(self, project_document):
        doc = QueryPipeline(max_output_limit=3).run(project_document, limit=10)
        assert doc["limit"] == 3
        assert doc["filteredCount"] == 3

    def test_facet_on_filtered_items(self, project_document):
        doc = QueryPipeline().run(project_document, criteria=FilterCriteria(assignee="bob"), facet="status")
        assert doc == {"field": "status", "values": ["Ready"], "counts": {"Ready": 2}}

    def test_facet_ignores_limit(self, project_document):
        doc = QueryPipeline().run(project_document, facet="repository", limit=1)
        assert doc["values"] == ["api", "web"]

    def test_graphql_input(self, graphql_document):
        doc = QueryPipeline().run(graphql_document, criteria=FilterCriteria(assignee="alice"))
        assert [i["id"] for i in doc["filteredItems"]] == ["PVTI_1", "PVTI_2"]
        assert doc["filteredItems"][0]["contentType"] == "ISSUE"

    def test_envelope_output_reloads(self, project_document):
        pipeline = QueryPipeline()
        first = pipeline.run(project_document, criteria=FilterCriteria(status="Ready"))
        again = pipeline.run(first, criteria=FilterCriteria(repository="web"))
        assert [i["id"] for i in again["filteredItems"]] == ["PVTI_2"]
        assert again["filteredItems"][0]["fields"]["Size"] == 5


class TestErrors:
    """Errors surface as typed exceptions."""

    def test_unknown_field_filter(self, project_document):
        with pytest.raises(UnknownFacetError):
            QueryPipeline().run(project_document, criteria=FilterCriteria(fields={"Team": "core"}))

    def test_unknown_facet(self, project_document):
        with pytest.raises(UnknownFacetError):
            QueryPipeline().run(project_document, facet="Team")

    def test_invalid_document(self):
        with pytest.raises(InvalidDocumentError):
            QueryPipeline().run({"hello": "world"})

    def test_malformed_items_skipped_by_default(self, project_document):
        project_document["items"].append({"title": "no id"})
        doc = QueryPipeline().run(project_document)
        assert doc["skippedItems"] == 1
        assert doc["totalItems"] == 4

    def test_strict_pipeline_fails_on_malformed_item(self, project_document):
        project_document["items"].append({"title": "no id"})
        with pytest.raises(MalformedItemError):
            QueryPipeline(skip_malformed=False).run(project_document)


class TestDiscoveryRuns:
    """describe and projects wrap the discovery operations."""

    def test_describe(self, project_document):
        doc = QueryPipeline().describe(project_document)
        assert [f["name"] for f in doc["fields"]][:3] == ["Title", "Status", "Priority"]

    def test_projects(self):
        docs = QueryPipeline().projects({"projects": [{"number": 1, "title": "Roadmap", "owner": "acme"}]})
        assert docs == [{"number": 1, "title": "Roadmap", "owner": "acme", "closed": False}]


class TestRunQuery:
    """Test the convenience function."""

    def test_run_query(self, project_document):
        assert run_query(project_document, view=OutputView.COUNT) == 4
