"""Pydantic contracts for Project Lens.

Every pipeline stage hands data to the next through these models.
"""

from .field_contracts import (
    FieldScalar,
    FieldKind,
    TextValue,
    NumberValue,
    DateValue,
    SingleSelectValue,
    IterationValue,
    MilestoneValue,
    FieldValue,
    FieldDescriptor,
    FieldSchema,
)

from .snapshot_contracts import (
    RawProjectDocument,
    Item,
    FilterCriteria,
    ProjectSnapshot,
)

from .output_contracts import (
    FacetResult,
    Envelope,
    ProjectSummary,
)

__all__ = [
    # Fields
    "FieldScalar",
    "FieldKind",
    "TextValue",
    "NumberValue",
    "DateValue",
    "SingleSelectValue",
    "IterationValue",
    "MilestoneValue",
    "FieldValue",
    "FieldDescriptor",
    "FieldSchema",
    # Snapshot
    "RawProjectDocument",
    "Item",
    "FilterCriteria",
    "ProjectSnapshot",
    # Output
    "FacetResult",
    "Envelope",
    "ProjectSummary",
]
