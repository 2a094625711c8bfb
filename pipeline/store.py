"""Item store: turn whatever the fetch produced into a RawProjectDocument.

Accepted inputs:
- the flat project-items document (`{"project": ..., "items": [...]}`)
- an envelope produced by this tool (`{"project": ..., "filteredItems": [...]}`)
- a bare list of items
- a GraphQL response for a ProjectV2 (organization, user, viewer or node)
- a list of paginated GraphQL responses, merged in page order
"""

import logging
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from contracts import RawProjectDocument
from pipeline.errors import InvalidDocumentError

logger = logging.getLogger(__name__)

_OWNER_KEYS = ("organization", "user", "viewer")


def connection_nodes(value: Any) -> List[Any]:
    """Return the nodes of a GraphQL connection, or the list itself."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        nodes = value.get("nodes")
        if isinstance(nodes, list):
            return nodes
    return []


def _check_graphql_errors(response: Dict[str, Any]) -> None:
    errors = response.get("errors")
    if errors and not response.get("data"):
        messages = "; ".join(
            e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors
        )
        raise InvalidDocumentError(f"GraphQL response carries errors: {messages}")


def find_project_node(response: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Locate the ProjectV2 node inside a GraphQL response.

    Returns:
        Tuple of (owner key the node was found under, project node)
    """
    _check_graphql_errors(response)
    data = response.get("data")
    if not isinstance(data, dict):
        raise InvalidDocumentError("GraphQL response has no 'data' object")

    for owner_key in _OWNER_KEYS:
        owner = data.get(owner_key)
        if isinstance(owner, dict) and isinstance(owner.get("projectV2"), dict):
            return owner_key, owner["projectV2"]

    node = data.get("node")
    if isinstance(node, dict):
        return "node", node

    raise InvalidDocumentError("GraphQL response contains no projectV2 node")


def merge_pages(pages: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Concatenate paginated project-item responses into one response.

    Project metadata and totalCount come from the first page; item nodes are
    appended in page order. The result has the same shape as a single,
    unpaginated response.
    """
    if not pages:
        raise InvalidDocumentError("No pages to merge")

    owner_key, first = find_project_node(pages[0])
    all_items: List[Any] = []
    for index, page in enumerate(pages):
        _, project = find_project_node(page)
        items = project.get("items") or {}
        all_items.extend(connection_nodes(items))
        page_info = items.get("pageInfo") if isinstance(items, dict) else None
        if page_info and not page_info.get("hasNextPage") and index < len(pages) - 1:
            logger.warning(
                "Page %d reports no next page but %d more were supplied",
                index + 1, len(pages) - index - 1,
            )

    first_items = first.get("items") or {}
    merged = {k: v for k, v in first.items() if k != "items"}
    merged["items"] = {
        "totalCount": first_items.get("totalCount", len(all_items)) if isinstance(first_items, dict) else len(all_items),
        "nodes": all_items,
    }
    logger.debug("Merged %d pages into %d items", len(pages), len(all_items))

    if owner_key == "node":
        return {"data": {"node": merged}}
    return {"data": {owner_key: {"projectV2": merged}}}


def _from_project_node(project: Dict[str, Any]) -> RawProjectDocument:
    items = project.get("items")
    total = items.get("totalCount") if isinstance(items, dict) else None
    return RawProjectDocument(
        project=project.get("title") or "",
        description=project.get("shortDescription") or project.get("description"),
        created_at=project.get("createdAt"),
        updated_at=project.get("updatedAt"),
        items=[n for n in connection_nodes(items) if n is not None],
        fields=[n for n in connection_nodes(project.get("fields")) if n is not None],
        total_count=total,
    )


def _from_flat(document: Dict[str, Any]) -> RawProjectDocument:
    items = document.get("items")
    if items is None:
        items = document.get("filteredItems", [])
    payload = {
        "project": document.get("project") or document.get("title") or "",
        "description": document.get("description"),
        "createdAt": document.get("createdAt"),
        "updatedAt": document.get("updatedAt"),
        "items": connection_nodes(items),
        "fields": connection_nodes(document.get("fields")),
    }
    return RawProjectDocument.model_validate(payload)


def _is_page_list(document: List[Any]) -> bool:
    return bool(document) and all(isinstance(p, dict) and "data" in p for p in document)


def load_document(document: Any) -> RawProjectDocument:
    """Normalize any accepted input shape into a RawProjectDocument."""
    try:
        if isinstance(document, list):
            if _is_page_list(document):
                return _from_project_node(find_project_node(merge_pages(document))[1])
            return RawProjectDocument(project="", items=document)

        if not isinstance(document, dict):
            raise InvalidDocumentError(
                f"Expected a JSON object or array, got {type(document).__name__}"
            )

        if "data" in document or "errors" in document:
            return _from_project_node(find_project_node(document)[1])

        if any(key in document for key in ("items", "filteredItems", "fields")):
            return _from_flat(document)
    except ValidationError as e:
        raise InvalidDocumentError(f"Project document failed validation: {e}") from e

    raise InvalidDocumentError("Document has no items, fields or GraphQL data")
