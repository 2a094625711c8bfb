"""Filter engine: narrow a snapshot's items by AND-ed field constraints.

Each call returns a new snapshot whose items are the order-preserving
subsequence that satisfies every active constraint. Constraints that are
unset (None or blank) are ignored, so composing a call with unused
parameters changes nothing.
"""

import logging
from typing import Any, Callable, List, Optional, Tuple

from config import settings
from contracts import FieldScalar, FilterCriteria, Item, ProjectSnapshot
from pipeline.errors import UnknownFacetError

logger = logging.getLogger(__name__)

Predicate = Callable[[Item], bool]

WELL_KNOWN_FACETS = ("repository", "assignee", "status", "priority")

# Sort keys taken from the GraphQL ProjectV2ItemOrderField, plus title
SORT_KEYS = ("POSITION", "CREATED_AT", "UPDATED_AT", "TITLE")


def value_sort_key(value: Any) -> Tuple[int, Any]:
    """Order numbers numerically ahead of strings, strings lexicographically."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))


def field_value_matches(actual: FieldScalar, expected: str) -> bool:
    """Exact match of a field value against a constraint.

    A missing or null value never matches. Number fields match the numeric
    reading of the constraint ("3" matches 3 and 3.0).
    """
    if actual is None:
        return False
    if isinstance(actual, (int, float)) and not isinstance(actual, bool):
        try:
            return float(expected) == float(actual)
        except ValueError:
            return False
    return actual == expected


def _field_predicate(field_name: str, expected: str) -> Predicate:
    def predicate(item: Item) -> bool:
        if field_name not in item.fields:
            return False
        return field_value_matches(item.fields[field_name], expected)
    return predicate


def _predicates(criteria: FilterCriteria) -> List[Predicate]:
    predicates: List[Predicate] = []
    if criteria.repository is not None:
        repo = criteria.repository
        predicates.append(lambda item: item.repository is not None and item.repository == repo)
    if criteria.assignee is not None:
        user = criteria.assignee
        predicates.append(lambda item: user in item.assignees)
    if criteria.status is not None:
        predicates.append(_field_predicate(settings.status_field, criteria.status))
    if criteria.priority is not None:
        predicates.append(_field_predicate(settings.priority_field, criteria.priority))
    for name, expected in criteria.fields.items():
        predicates.append(_field_predicate(name, expected))
    return predicates


def unbacked_facets(snapshot: ProjectSnapshot) -> List[str]:
    """Field facets (status, priority) whose backing field the project schema lacks.

    Without a field schema every facet is assumed to exist.
    """
    if not snapshot.has_field_schema:
        return []
    return [
        facet for facet, name in settings.facet_field_names().items()
        if name not in snapshot.field_names
    ]


def _check_known_fields(snapshot: ProjectSnapshot, criteria: FilterCriteria) -> None:
    missing = unbacked_facets(snapshot)
    known = [f for f in WELL_KNOWN_FACETS if f not in missing] + snapshot.field_names
    for facet in missing:
        if getattr(criteria, facet) is not None:
            raise UnknownFacetError(facet, known)
    for name in criteria.fields:
        if name not in snapshot.field_names:
            raise UnknownFacetError(name, known)


def _warn_conflicts(previous: FilterCriteria, criteria: FilterCriteria) -> None:
    for facet in WELL_KNOWN_FACETS:
        before, after = getattr(previous, facet), getattr(criteria, facet)
        if before is not None and after is not None and before != after:
            logger.warning(
                "Conflicting %s constraints '%s' and '%s'; no item can match both",
                facet, before, after,
            )
    for name, after in criteria.fields.items():
        before = previous.fields.get(name)
        if before is not None and before != after:
            logger.warning(
                "Conflicting constraints on field '%s': '%s' and '%s'", name, before, after
            )


def apply_filters(snapshot: ProjectSnapshot, criteria: Optional[FilterCriteria] = None) -> ProjectSnapshot:
    """Keep the items that satisfy every active constraint in `criteria`.

    The result carries the original pre-filter total and the accumulated
    criteria of every filter applied so far.

    Raises:
        UnknownFacetError: an arbitrary field constraint names a field the
            project does not have
    """
    criteria = criteria or FilterCriteria()
    _check_known_fields(snapshot, criteria)
    _warn_conflicts(snapshot.applied_filters, criteria)

    predicates = _predicates(criteria)
    kept = [item for item in snapshot.items if all(p(item) for p in predicates)]
    logger.debug("Filter %s kept %d of %d items", criteria.active_constraints(), len(kept), len(snapshot.items))

    return snapshot.model_copy(update={
        "items": kept,
        "applied_filters": snapshot.applied_filters.merge(criteria),
    })


def filter_by_repository(snapshot: ProjectSnapshot, repository: Optional[str]) -> ProjectSnapshot:
    return apply_filters(snapshot, FilterCriteria(repository=repository))


def filter_by_assignee(snapshot: ProjectSnapshot, assignee: Optional[str]) -> ProjectSnapshot:
    return apply_filters(snapshot, FilterCriteria(assignee=assignee))


def filter_by_status(snapshot: ProjectSnapshot, status: Optional[str]) -> ProjectSnapshot:
    return apply_filters(snapshot, FilterCriteria(status=status))


def filter_by_priority(snapshot: ProjectSnapshot, priority: Optional[str]) -> ProjectSnapshot:
    return apply_filters(snapshot, FilterCriteria(priority=priority))


def _sort_getter(snapshot: ProjectSnapshot, key: str) -> Callable[[Item], Any]:
    upper = key.upper()
    if upper == "CREATED_AT":
        return lambda item: item.created_at
    if upper == "UPDATED_AT":
        return lambda item: item.updated_at
    if upper == "TITLE":
        return lambda item: item.title or None
    if key not in snapshot.field_names:
        raise UnknownFacetError(key, list(SORT_KEYS) + snapshot.field_names)
    return lambda item: item.fields.get(key)


def sort_items(snapshot: ProjectSnapshot, key: str = "POSITION", descending: bool = False) -> ProjectSnapshot:
    """Reorder items by a sort key or project field.

    POSITION keeps fetch order (reversed when descending). Other keys sort
    stably; items without a value for the key always go last.
    """
    if key.upper() == "POSITION":
        items = list(reversed(snapshot.items)) if descending else list(snapshot.items)
        return snapshot.model_copy(update={"items": items})

    getter = _sort_getter(snapshot, key)
    present = [item for item in snapshot.items if getter(item) is not None]
    missing = [item for item in snapshot.items if getter(item) is None]
    present.sort(key=lambda item: value_sort_key(getter(item)), reverse=descending)
    return snapshot.model_copy(update={"items": present + missing})
