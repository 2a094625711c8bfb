"""Pipeline stages: store -> extract -> filter / discover -> project.

Every stage is a pure function over immutable contracts.
"""

from .errors import (
    ProjectLensError,
    InvalidDocumentError,
    MalformedItemError,
    UnknownFacetError,
)
from .store import load_document, merge_pages
from .extractor import (
    ExtractionResult,
    extract_item,
    extract_items,
    build_snapshot,
    short_repository_name,
)
from .filters import (
    apply_filters,
    filter_by_repository,
    filter_by_assignee,
    filter_by_status,
    filter_by_priority,
    sort_items,
)
from .discovery import (
    facets,
    list_assignees,
    list_repositories,
    list_statuses,
    list_priorities,
    list_reviewers,
    list_linked_prs,
    describe_fields,
    list_projects,
)
from .projection import (
    LimitDecision,
    clamp_limit,
    limit_items,
    to_envelope,
    to_items,
    to_count,
    to_field_schema,
)

__all__ = [
    # Errors
    "ProjectLensError",
    "InvalidDocumentError",
    "MalformedItemError",
    "UnknownFacetError",
    # Store
    "load_document",
    "merge_pages",
    # Extraction
    "ExtractionResult",
    "extract_item",
    "extract_items",
    "build_snapshot",
    "short_repository_name",
    # Filtering
    "apply_filters",
    "filter_by_repository",
    "filter_by_assignee",
    "filter_by_status",
    "filter_by_priority",
    "sort_items",
    # Discovery
    "facets",
    "list_assignees",
    "list_repositories",
    "list_statuses",
    "list_priorities",
    "list_reviewers",
    "list_linked_prs",
    "describe_fields",
    "list_projects",
    # Projection
    "LimitDecision",
    "clamp_limit",
    "limit_items",
    "to_envelope",
    "to_items",
    "to_count",
    "to_field_schema",
]
