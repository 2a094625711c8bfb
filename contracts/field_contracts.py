"""Field contracts: project custom-field values and field-schema descriptors.

Custom field values arrive from GitHub as a GraphQL union
(ProjectV2ItemFieldTextValue, ProjectV2ItemFieldSingleSelectValue, ...).
Each case is modelled here as its own variant, discriminated on `kind`.
"""

import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# A flattened, displayable field value as stored on a normalized Item.
FieldScalar = Optional[Union[str, int, float]]


class FieldKind(str, Enum):
    """Kind of a project field, as reported by the field-structure query."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SINGLE_SELECT = "single_select"
    ITERATION = "iteration"
    MILESTONE = "milestone"
    # Built-in fields GitHub adds to every project
    TITLE = "title"
    ASSIGNEES = "assignees"
    LABELS = "labels"
    REPOSITORY = "repository"
    REVIEWERS = "reviewers"
    LINKED_PULL_REQUESTS = "linked_pull_requests"
    TRACKS = "tracks"
    TRACKED_BY = "tracked_by"
    PARENT_ISSUE = "parent_issue"
    SUB_ISSUES_PROGRESS = "sub_issues_progress"
    ISSUE_TYPE = "issue_type"


class _FieldValueBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_name: str = Field(..., min_length=1, description="Name of the project field this value belongs to")

    def display_value(self) -> FieldScalar:
        raise NotImplementedError


class TextValue(_FieldValueBase):
    """Value of a free-text field."""
    kind: Literal["text"] = "text"
    text: Optional[str] = None

    def display_value(self) -> FieldScalar:
        return self.text


class NumberValue(_FieldValueBase):
    """Value of a number field."""
    kind: Literal["number"] = "number"
    number: Optional[float] = None

    def display_value(self) -> FieldScalar:
        if self.number is not None and self.number.is_integer():
            return int(self.number)
        return self.number


class DateValue(_FieldValueBase):
    """Value of a date field (ISO-8601 calendar date)."""
    kind: Literal["date"] = "date"
    date: Optional[str] = None

    @field_validator("date")
    @classmethod
    def check_iso_date(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            datetime.date.fromisoformat(v[:10])
        return v

    def display_value(self) -> FieldScalar:
        return self.date


class SingleSelectValue(_FieldValueBase):
    """Chosen option of a single-select field (Status, Priority, ...)."""
    kind: Literal["single_select"] = "single_select"
    name: Optional[str] = None
    option_id: Optional[str] = None

    def display_value(self) -> FieldScalar:
        return self.name


class IterationValue(_FieldValueBase):
    """Iteration an item is scheduled in."""
    kind: Literal["iteration"] = "iteration"
    title: Optional[str] = None
    start_date: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0, description="Iteration length in days")

    def display_value(self) -> FieldScalar:
        return self.title


class MilestoneValue(_FieldValueBase):
    """Repository milestone, surfaced by projects as a read-only field."""
    kind: Literal["milestone"] = "milestone"
    title: Optional[str] = None

    def display_value(self) -> FieldScalar:
        return self.title


FieldValue = Annotated[
    Union[TextValue, NumberValue, DateValue, SingleSelectValue, IterationValue, MilestoneValue],
    Field(discriminator="kind"),
]


class FieldDescriptor(BaseModel):
    """One entry of a project's field schema."""
    name: str = Field(..., min_length=1)
    kind: str = Field(..., description="FieldKind value, or the lowercased GitHub data type when unrecognized")
    options: Optional[List[str]] = Field(None, description="Legal option names; single-select fields only")


class FieldSchema(BaseModel):
    """Field-structure discovery result for one project."""
    project: str
    fields: List[FieldDescriptor] = Field(default_factory=list)

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def to_document(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
