"""Field extractor: normalize raw project items into flat Item records.

Raw items nest their custom fields under a `fieldValues` connection of
GraphQL union nodes. Each node is dispatched on its `__typename` to one of
the field-value variants in `contracts.field_contracts`; nodes of kinds we
do not model are dropped without complaint.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config import settings
from contracts import (
    DateValue,
    FieldScalar,
    FilterCriteria,
    Item,
    IterationValue,
    MilestoneValue,
    NumberValue,
    ProjectSnapshot,
    RawProjectDocument,
    SingleSelectValue,
    TextValue,
)
from pipeline.errors import MalformedItemError
from pipeline.schema import parse_field_schema
from pipeline.store import connection_nodes

logger = logging.getLogger(__name__)


_VALUE_MODELS = {
    "ProjectV2ItemFieldTextValue": TextValue,
    "ProjectV2ItemFieldNumberValue": NumberValue,
    "ProjectV2ItemFieldDateValue": DateValue,
    "ProjectV2ItemFieldSingleSelectValue": SingleSelectValue,
    "ProjectV2ItemFieldIterationValue": IterationValue,
    "ProjectV2ItemFieldMilestoneValue": MilestoneValue,
    "text": TextValue,
    "number": NumberValue,
    "date": DateValue,
    "single_select": SingleSelectValue,
    "iteration": IterationValue,
    "milestone": MilestoneValue,
}

# Nodes that describe item attributes rather than custom field values
_USER_VALUE = "ProjectV2ItemFieldUserValue"
_REPOSITORY_VALUE = "ProjectV2ItemFieldRepositoryValue"
_REVIEWER_VALUE = "ProjectV2ItemFieldReviewerValue"
_PULL_REQUEST_VALUE = "ProjectV2ItemFieldPullRequestValue"

_CONTENT_TYPES = {
    "Issue": "ISSUE",
    "PullRequest": "PULL_REQUEST",
    "DraftIssue": "DRAFT_ISSUE",
}


@dataclass
class ExtractionResult:
    """Normalized items of one batch plus the malformed ones that were skipped."""
    items: List[Item] = field(default_factory=list)
    errors: List[MalformedItemError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


def short_repository_name(value: Any) -> Optional[str]:
    """Reduce a repository reference to the short name filters are written against.

    Accepts "owner/name", "name", a repository URL, or a GraphQL repository
    object with `nameWithOwner` or `name`.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return short_repository_name(value.get("nameWithOwner") or value.get("name"))
    text = str(value).strip().rstrip("/")
    if not text:
        return None
    return text.rsplit("/", 1)[-1]


def _logins(value: Any) -> List[str]:
    """Usernames from a list of strings, a list of user objects, or a connection."""
    logins = []
    for entry in connection_nodes(value):
        if isinstance(entry, dict):
            entry = entry.get("login") or entry.get("name")
        if isinstance(entry, str) and entry:
            logins.append(entry)
    return logins


def _pull_request_refs(value: Any) -> List[str]:
    refs = []
    for pr in connection_nodes(value):
        if not isinstance(pr, dict):
            if pr is not None:
                refs.append(str(pr))
            continue
        number = pr.get("number")
        repo = short_repository_name(pr.get("repository"))
        if number is not None:
            refs.append(f"{repo}#{number}" if repo else f"#{number}")
        elif pr.get("url"):
            refs.append(pr["url"])
    return refs


def _field_name(node: Dict[str, Any]) -> Optional[str]:
    ref = node.get("field")
    if isinstance(ref, dict):
        return ref.get("name")
    if isinstance(ref, str):
        return ref
    return node.get("fieldName")


def parse_field_node(node: Any, item_id: Optional[str] = None):
    """Turn one raw field node into a field-value variant.

    Returns:
        The typed value, or None when the node's kind is not modelled

    Raises:
        MalformedItemError: the node is of a known kind but its payload is invalid
    """
    if not isinstance(node, dict):
        raise MalformedItemError("field node is not an object", item_id)

    model = _VALUE_MODELS.get(node.get("__typename") or node.get("kind") or "")
    if model is None:
        return None

    payload: Dict[str, Any] = {"field_name": _field_name(node)}
    if model is TextValue:
        payload["text"] = node.get("text")
    elif model is NumberValue:
        payload["number"] = node.get("number")
    elif model is DateValue:
        payload["date"] = node.get("date")
    elif model is SingleSelectValue:
        payload["name"] = node.get("name")
        payload["option_id"] = node.get("optionId")
    elif model is IterationValue:
        payload["title"] = node.get("title")
        payload["start_date"] = node.get("startDate")
        payload["duration"] = node.get("duration")
    elif model is MilestoneValue:
        milestone = node.get("milestone")
        payload["title"] = milestone.get("title") if isinstance(milestone, dict) else node.get("title")

    try:
        return model(**payload)
    except ValidationError as e:
        raise MalformedItemError(
            f"unparseable {model.__name__} node: {e.errors()[0]['msg']}", item_id
        ) from e


def _item_id(raw: Dict[str, Any]) -> str:
    item_id = raw.get("id")
    if isinstance(item_id, bool) or not isinstance(item_id, (str, int)):
        raise MalformedItemError("missing required 'id'")
    item_id = str(item_id).strip()
    if not item_id:
        raise MalformedItemError("missing required 'id'")
    return item_id


def extract_item(raw: Any) -> Item:
    """Normalize one raw item.

    Pure: the same raw item always yields an equal Item.

    Raises:
        MalformedItemError: no usable id, or an unparseable field node
    """
    if not isinstance(raw, dict):
        raise MalformedItemError("item is not an object")
    item_id = _item_id(raw)

    content = raw.get("content") if isinstance(raw.get("content"), dict) else {}

    repository = short_repository_name(raw.get("repository") or content.get("repository"))
    assignees = _logins(raw.get("assignees")) + _logins(content.get("assignees"))
    reviewers = _logins(raw.get("reviewers"))
    linked = _pull_request_refs(raw.get("linkedPullRequests"))
    fields: Dict[str, FieldScalar] = {}

    for node in connection_nodes(raw.get("fieldValues")):
        if node is None:
            continue
        typename = node.get("__typename") if isinstance(node, dict) else None
        if typename == _USER_VALUE:
            assignees.extend(_logins(node.get("users")))
            continue
        if typename == _REPOSITORY_VALUE:
            repository = repository or short_repository_name(node.get("repository"))
            continue
        if typename == _REVIEWER_VALUE:
            reviewers.extend(_logins(node.get("reviewers")))
            continue
        if typename == _PULL_REQUEST_VALUE:
            linked.extend(_pull_request_refs(node.get("pullRequests")))
            continue

        value = parse_field_node(node, item_id)
        if value is None:
            logger.debug("Item %s: dropping unsupported field node %s", item_id, typename or "{}")
            continue
        if value.field_name in fields:
            logger.warning(
                "Item %s has more than one value for field '%s'; keeping the first",
                item_id, value.field_name,
            )
            continue
        fields[value.field_name] = value.display_value()

    # Already-flattened fields (an envelope fed back in) fill any gaps
    flat = raw.get("fields")
    if isinstance(flat, dict):
        for name, value in flat.items():
            if isinstance(value, (dict, list)) or isinstance(value, bool):
                raise MalformedItemError(f"field '{name}' is not a scalar", item_id)
            fields.setdefault(name, value)

    content_type = raw.get("type") or raw.get("contentType") or _CONTENT_TYPES.get(content.get("__typename", ""))

    try:
        return Item(
            id=item_id,
            title=raw.get("title") or content.get("title") or "",
            repository=repository,
            assignees=assignees,
            fields=fields,
            content_type=content_type,
            number=raw.get("number", content.get("number")),
            url=raw.get("url") or content.get("url"),
            reviewers=reviewers,
            linked_pull_requests=linked,
            created_at=raw.get("createdAt") or content.get("createdAt"),
            updated_at=raw.get("updatedAt") or content.get("updatedAt"),
        )
    except ValidationError as e:
        raise MalformedItemError(f"invalid item attributes: {e.errors()[0]['msg']}", item_id) from e


def extract_items(raw_items: List[Any], skip_malformed: Optional[bool] = None) -> ExtractionResult:
    """Normalize a batch of raw items.

    Args:
        raw_items: Items in fetch order
        skip_malformed: Skip malformed items (True) or re-raise the first
            failure (False). Defaults to settings.skip_malformed_items.

    Returns:
        ExtractionResult with the surviving items in input order
    """
    if skip_malformed is None:
        skip_malformed = settings.skip_malformed_items

    result = ExtractionResult()
    for position, raw in enumerate(raw_items):
        try:
            result.items.append(extract_item(raw))
        except MalformedItemError as e:
            if not skip_malformed:
                raise
            logger.warning("Skipping item at position %d: %s", position, e)
            result.errors.append(e)
    return result


def build_snapshot(raw: RawProjectDocument, skip_malformed: Optional[bool] = None) -> ProjectSnapshot:
    """Extract every item of a raw document into an unfiltered ProjectSnapshot.

    Known field names come from the document's field schema when it has one,
    otherwise from the fields observed on the items.
    """
    extraction = extract_items(raw.items, skip_malformed)

    field_names = [d.name for d in parse_field_schema(raw.fields)]
    has_field_schema = bool(field_names)
    if not has_field_schema:
        for item in extraction.items:
            for name in item.fields:
                if name not in field_names:
                    field_names.append(name)

    return ProjectSnapshot(
        title=raw.project,
        description=raw.description,
        created_at=raw.created_at,
        updated_at=raw.updated_at,
        items=extraction.items,
        total_items=len(extraction.items),
        applied_filters=FilterCriteria(),
        field_names=field_names,
        has_field_schema=has_field_schema,
        skipped_items=extraction.skipped,
    )
