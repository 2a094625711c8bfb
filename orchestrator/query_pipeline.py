"""Query pipeline - runs one invocation of the Project Lens stage chain.

The pipeline:
1. Loads the fetched document into a normalized snapshot
2. Applies filters, then an optional sort
3. Either computes a facet or projects the result (envelope, items, count)
4. Returns a JSON-ready document for the presentation layer
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from config import settings
from contracts import FilterCriteria, ProjectSnapshot
from pipeline import (
    apply_filters,
    build_snapshot,
    describe_fields,
    facets,
    limit_items,
    list_projects,
    load_document,
    sort_items,
    to_count,
    to_envelope,
    to_field_schema,
    to_items,
)

logger = logging.getLogger(__name__)

JSONResult = Union[Dict[str, Any], List[Any], int]


class OutputView(str, Enum):
    """Terminal document a run produces."""
    ENVELOPE = "envelope"
    ITEMS = "items"
    COUNT = "count"


class QueryPipeline:
    """Chains store, extraction, filtering, discovery and projection.

    Holds only configuration; every run works on its own snapshot, so one
    instance can serve any number of independent invocations.
    """

    def __init__(
        self,
        skip_malformed: Optional[bool] = None,
        max_output_limit: Optional[int] = None,
    ):
        """Initialize the pipeline.

        Args:
            skip_malformed: Skip malformed items instead of failing the run
            max_output_limit: Upper bound for limited projections
        """
        self.skip_malformed = (
            settings.skip_malformed_items if skip_malformed is None else skip_malformed
        )
        self.max_output_limit = max_output_limit or settings.max_output_limit

    def load(self, document: Any) -> ProjectSnapshot:
        """Turn a fetched document into an unfiltered snapshot."""
        snapshot = build_snapshot(load_document(document), self.skip_malformed)
        logger.info(
            "Loaded project '%s': %d items, %d skipped",
            snapshot.title, snapshot.total_items, snapshot.skipped_items,
        )
        return snapshot

    def select(
        self,
        snapshot: ProjectSnapshot,
        criteria: Optional[FilterCriteria] = None,
        sort: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> ProjectSnapshot:
        """Filter, sort and truncate a snapshot, in that order."""
        result = apply_filters(snapshot, criteria)
        if sort:
            result = sort_items(result, sort, descending)
        if limit is not None:
            result = limit_items(result, limit, self.max_output_limit)
        return result

    def run(
        self,
        document: Any,
        criteria: Optional[FilterCriteria] = None,
        sort: Optional[str] = None,
        descending: bool = False,
        facet: Optional[str] = None,
        view: OutputView = OutputView.ENVELOPE,
        limit: Optional[int] = None,
    ) -> JSONResult:
        """Execute one query against a fetched document.

        Args:
            document: Raw project document (flat, envelope or GraphQL)
            criteria: Filter constraints; None filters nothing
            sort: Sort key (POSITION, CREATED_AT, UPDATED_AT, TITLE or a field name)
            descending: Reverse the sort order
            facet: When set, return distinct values of this facet instead of items
            view: Projection to return when no facet is requested
            limit: Truncate the item set to this many items (clamped)

        Returns:
            JSON-ready facet document, envelope, item list or count
        """
        snapshot = self.load(document)

        if facet:
            return facets(apply_filters(snapshot, criteria), facet).to_document()

        selected = self.select(snapshot, criteria, sort, descending, limit)

        if view == OutputView.COUNT:
            return to_count(selected)
        if view == OutputView.ITEMS:
            return [item.to_document() for item in to_items(selected)]
        return to_envelope(selected).to_document()

    def describe(self, document: Any) -> Dict[str, Any]:
        """Field-schema document for a field-structure response."""
        return to_field_schema(describe_fields(document))

    def projects(self, document: Any) -> List[Dict[str, Any]]:
        """Project summaries for a project-discovery response."""
        return [p.to_document() for p in list_projects(document)]


def run_query(document: Any, **kwargs: Any) -> JSONResult:
    """Convenience function for running a single query.

    Args:
        document: Raw project document
        **kwargs: Passed through to QueryPipeline.run

    Returns:
        JSON-ready result document
    """
    pipeline = QueryPipeline()
    return pipeline.run(document, **kwargs)
