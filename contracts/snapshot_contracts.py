"""Snapshot contracts: raw project documents, normalized items, filter criteria.

A ProjectSnapshot is an immutable capture of a project's items at fetch time.
Every pipeline stage returns a new snapshot rather than mutating the one it got.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Tuple

from .field_contracts import FieldScalar


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    unique = []
    for v in values:
        if v not in seen:
            seen.add(v)
            unique.append(v)
    return unique


class RawProjectDocument(BaseModel):
    """Project-items document as supplied by the upstream fetch.

    Items stay as raw JSON values; the extractor owns their interpretation.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    project: str = Field(..., description="Project display name")
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    items: List[Any] = Field(default_factory=list)
    fields: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Field-structure nodes, when the fetch included them",
    )
    total_count: Optional[int] = Field(None, ge=0, description="Server-reported item count")


class Item(BaseModel):
    """One normalized project entry (issue, pull request or draft issue)."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    repository: Optional[str] = Field(None, description="Short repository name; None for drafts")
    assignees: List[str] = Field(default_factory=list)
    fields: Dict[str, FieldScalar] = Field(default_factory=dict)
    content_type: Optional[str] = Field(None, description="ISSUE, PULL_REQUEST or DRAFT_ISSUE")
    number: Optional[int] = None
    url: Optional[str] = None
    reviewers: List[str] = Field(default_factory=list)
    linked_pull_requests: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("assignees", "reviewers", "linked_pull_requests")
    @classmethod
    def drop_duplicates(cls, v: List[str]) -> List[str]:
        return _dedupe(v)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FilterCriteria(BaseModel):
    """Zero or more (facet, expected value) constraints, combined with AND.

    A None or blank value means "do not constrain on this facet"; it never
    means "the field must be empty".
    """
    model_config = ConfigDict(frozen=True)

    repository: Optional[str] = None
    assignee: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    fields: Dict[str, str] = Field(
        default_factory=dict,
        description="Constraints on arbitrary project fields, keyed by field name",
    )

    @field_validator("repository", "assignee", "status", "priority", mode="before")
    @classmethod
    def blank_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("fields", mode="before")
    @classmethod
    def drop_blank_fields(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {
                k: str(val) for k, val in v.items()
                if val is not None and not (isinstance(val, str) and not val.strip())
            }
        return v

    def active_constraints(self) -> List[Tuple[str, str]]:
        """List (facet, value) pairs for every constraint that is set.

        Arbitrary fields are reported with their own field name as facet.
        """
        pairs = [
            (facet, getattr(self, facet))
            for facet in ("repository", "assignee", "status", "priority")
            if getattr(self, facet) is not None
        ]
        pairs.extend(self.fields.items())
        return pairs

    def is_empty(self) -> bool:
        return not self.active_constraints()

    def merge(self, other: "FilterCriteria") -> "FilterCriteria":
        """Combine two criteria; values set on `other` take precedence."""
        update = {
            facet: getattr(other, facet)
            for facet in ("repository", "assignee", "status", "priority")
            if getattr(other, facet) is not None
        }
        update["fields"] = {**self.fields, **other.fields}
        return self.model_copy(update=update)

    def to_document(self) -> Dict[str, Any]:
        return {
            "repository": self.repository,
            "assignee": self.assignee,
            "status": self.status,
            "priority": self.priority,
            "fields": dict(self.fields),
        }


class ProjectSnapshot(BaseModel):
    """Immutable, normalized view of one project fetch plus pipeline bookkeeping."""
    model_config = ConfigDict(frozen=True)

    title: str
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    items: List[Item] = Field(default_factory=list)
    total_items: int = Field(0, ge=0, description="Item count before any filtering")
    applied_filters: FilterCriteria = Field(default_factory=FilterCriteria)
    field_names: List[str] = Field(
        default_factory=list,
        description="Custom field names known to exist in the project schema",
    )
    has_field_schema: bool = Field(
        False,
        description="field_names came from a field-structure schema rather than from the items",
    )
    skipped_items: int = Field(0, ge=0, description="Malformed items dropped during extraction")
    effective_limit: Optional[int] = Field(None, ge=1, description="Limit applied by the output stage")

    @model_validator(mode="before")
    @classmethod
    def default_total(cls, data: Any) -> Any:
        """An unfiltered snapshot's total is simply its item count."""
        if isinstance(data, dict) and data.get("total_items") is None:
            data = dict(data)
            data["total_items"] = len(data.get("items") or [])
        return data
