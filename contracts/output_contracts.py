"""Output contracts: documents handed to the downstream presentation layer."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union

from .snapshot_contracts import Item


class FacetResult(BaseModel):
    """Distinct non-null values of one field across an item set."""
    field: str
    values: List[Union[str, int, float]] = Field(default_factory=list)
    counts: Dict[str, int] = Field(
        default_factory=dict,
        description="Number of items carrying each value, keyed by the value's string form",
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class Envelope(BaseModel):
    """Filtered items wrapped with project metadata, counts and applied filters."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project: str
    total_items: int = Field(..., ge=0)
    filters: Dict[str, Any] = Field(default_factory=dict)
    filtered_items: List[Item] = Field(default_factory=list)
    filtered_count: int = Field(..., ge=0)
    skipped_items: int = Field(0, ge=0)
    limit: Optional[int] = Field(None, ge=1)

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(mode="json", by_alias=True)
        if doc["limit"] is None:
            del doc["limit"]
        return doc


class ProjectSummary(BaseModel):
    """One project found by a project-discovery query."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    number: int
    title: str
    owner: Optional[str] = None
    url: Optional[str] = None
    closed: bool = False
    item_count: Optional[int] = Field(None, ge=0)
    short_description: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
