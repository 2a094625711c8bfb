"""Discovery engine: what values, fields and projects are there to filter on.

Facets are computed over an already-materialized snapshot, so discovery can
run before or after any number of filters without refetching.
"""

import logging
from typing import Any, Callable, Dict, List, Tuple

from config import settings
from contracts import FacetResult, FieldSchema, Item, ProjectSnapshot, ProjectSummary
from pipeline.errors import InvalidDocumentError, UnknownFacetError
from pipeline.filters import unbacked_facets, value_sort_key
from pipeline.schema import parse_field_schema
from pipeline.store import connection_nodes, load_document

logger = logging.getLogger(__name__)

ItemValues = Callable[[Item], List[Any]]

FACETS = ("assignee", "repository", "status", "priority", "reviewer", "linked_pr")

_ALIASES = {
    "assignees": "assignee",
    "repo": "repository",
    "repos": "repository",
    "repositories": "repository",
    "statuses": "status",
    "priorities": "priority",
    "reviewers": "reviewer",
    "linked_prs": "linked_pr",
    "linked_pull_requests": "linked_pr",
}


def _field_values(field_name: str) -> ItemValues:
    return lambda item: [item.fields.get(field_name)]


def _values_for(snapshot: ProjectSnapshot, field: str) -> Tuple[str, ItemValues]:
    """Resolve a facet or field name to the function that reads its values."""
    facet = _ALIASES.get(field.lower(), field.lower())
    if facet == "assignee":
        return facet, lambda item: item.assignees
    if facet == "repository":
        return facet, lambda item: [item.repository]
    if facet == "reviewer":
        return facet, lambda item: item.reviewers
    if facet == "linked_pr":
        return facet, lambda item: item.linked_pull_requests
    missing = unbacked_facets(snapshot)
    if facet in ("status", "priority") and facet not in missing:
        return facet, _field_values(settings.facet_field_names()[facet])
    if field in snapshot.field_names:
        return field, _field_values(field)
    known = [f for f in FACETS if f not in missing] + snapshot.field_names
    raise UnknownFacetError(field, known)


def facets(snapshot: ProjectSnapshot, field: str) -> FacetResult:
    """Distinct non-null values of `field` across the snapshot's items.

    Multi-valued facets (assignee, reviewer, linked_pr) are flattened across
    every item. Each item counts once per value it carries. Values with the
    same string form (3 and "3") are one value, as they are to a filter; the
    first form seen is reported.

    Raises:
        UnknownFacetError: `field` is neither a facet nor a known project field
    """
    name, read = _values_for(snapshot, field)
    counts: Dict[str, int] = {}
    first_seen: Dict[str, Any] = {}
    for item in snapshot.items:
        seen = set()
        for value in read(item):
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            key = str(value)
            if key in seen:
                continue
            seen.add(key)
            first_seen.setdefault(key, value)
            counts[key] = counts.get(key, 0) + 1

    values = sorted(first_seen.values(), key=value_sort_key)
    return FacetResult(
        field=name,
        values=values,
        counts={str(v): counts[str(v)] for v in values},
    )


def list_assignees(snapshot: ProjectSnapshot) -> List[Any]:
    return facets(snapshot, "assignee").values


def list_repositories(snapshot: ProjectSnapshot) -> List[Any]:
    return facets(snapshot, "repository").values


def list_statuses(snapshot: ProjectSnapshot) -> List[Any]:
    return facets(snapshot, "status").values


def list_priorities(snapshot: ProjectSnapshot) -> List[Any]:
    return facets(snapshot, "priority").values


def list_reviewers(snapshot: ProjectSnapshot) -> List[Any]:
    return facets(snapshot, "reviewer").values


def list_linked_prs(snapshot: ProjectSnapshot) -> List[Any]:
    return facets(snapshot, "linked_pr").values


def describe_fields(document: Any) -> FieldSchema:
    """Describe a project's fields from a field-structure document.

    Works on project schema metadata, not on items: the input is the result
    of a separate field-structure fetch (flat or GraphQL).
    """
    raw = load_document(document)
    return FieldSchema(project=raw.project, fields=parse_field_schema(raw.fields))


def _summaries(nodes: List[Any], owner: Any = None) -> List[ProjectSummary]:
    summaries = []
    for node in nodes:
        if not isinstance(node, dict) or node.get("number") is None:
            continue
        node_owner = node.get("owner")
        if isinstance(node_owner, dict):
            node_owner = node_owner.get("login")
        items = node.get("items")
        summaries.append(ProjectSummary(
            number=node["number"],
            title=node.get("title") or "",
            owner=node_owner or owner,
            url=node.get("url"),
            closed=bool(node.get("closed", False)),
            item_count=items.get("totalCount") if isinstance(items, dict) else None,
            short_description=node.get("shortDescription"),
        ))
    return summaries


def list_projects(document: Any) -> List[ProjectSummary]:
    """Summarize the projects found by a project-discovery query.

    Handles viewer, user, organization and repository project listings, the
    viewer's organizations, and a flat `{"projects": [...]}` list. Results
    are de-duplicated and sorted by owner, then number.
    """
    if isinstance(document, dict) and "projects" in document:
        found = _summaries(connection_nodes(document["projects"]))
    else:
        data = document.get("data") if isinstance(document, dict) else None
        if not isinstance(data, dict):
            raise InvalidDocumentError("Project discovery response has no 'data' object")

        found = []
        for key in ("viewer", "user", "organization"):
            owner = data.get(key)
            if not isinstance(owner, dict):
                continue
            found.extend(_summaries(connection_nodes(owner.get("projectsV2")), owner.get("login")))
            for org in connection_nodes(owner.get("organizations")):
                if isinstance(org, dict):
                    found.extend(_summaries(connection_nodes(org.get("projectsV2")), org.get("login")))

        repo = data.get("repository")
        if isinstance(repo, dict):
            repo_owner = repo.get("owner")
            owner_login = repo_owner.get("login") if isinstance(repo_owner, dict) else None
            found.extend(_summaries(connection_nodes(repo.get("projectsV2")), owner_login))

    unique: Dict[Tuple[str, int], ProjectSummary] = {}
    for summary in found:
        unique.setdefault((summary.owner or "", summary.number), summary)
    logger.debug("Discovered %d projects", len(unique))
    return [unique[key] for key in sorted(unique)]
