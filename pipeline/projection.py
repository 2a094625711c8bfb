"""Projection stage: derive the terminal documents handed downstream.

No human-oriented formatting happens here; the downstream consumer decides
how to render the envelope, the item list or the count.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import settings, HARD_LIMIT_CEILING
from contracts import Envelope, FieldSchema, Item, ProjectSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LimitDecision:
    """Outcome of clamping a requested output limit."""
    requested: int
    effective: int

    @property
    def clamped(self) -> bool:
        return self.requested != self.effective


def clamp_limit(requested: int, maximum: Optional[int] = None) -> LimitDecision:
    """Clamp a requested limit into [1, maximum].

    Out-of-range requests are not an error: the effective limit is reported
    back instead. `maximum` defaults to settings.max_output_limit and can
    never exceed the hard ceiling.
    """
    ceiling = min(maximum or settings.max_output_limit, HARD_LIMIT_CEILING)
    effective = max(1, min(requested, ceiling))
    decision = LimitDecision(requested=requested, effective=effective)
    if decision.clamped:
        logger.warning("Limit %d out of range 1..%d; using %d", requested, ceiling, effective)
    return decision


def limit_items(snapshot: ProjectSnapshot, limit: int, maximum: Optional[int] = None) -> ProjectSnapshot:
    """Keep only the first `limit` items (after clamping). Never reorders."""
    decision = clamp_limit(limit, maximum)
    return snapshot.model_copy(update={
        "items": snapshot.items[:decision.effective],
        "effective_limit": decision.effective,
    })


def to_envelope(snapshot: ProjectSnapshot) -> Envelope:
    return Envelope(
        project=snapshot.title,
        total_items=snapshot.total_items,
        filters=snapshot.applied_filters.to_document(),
        filtered_items=list(snapshot.items),
        filtered_count=len(snapshot.items),
        skipped_items=snapshot.skipped_items,
        limit=snapshot.effective_limit,
    )


def to_items(snapshot: ProjectSnapshot) -> List[Item]:
    return list(snapshot.items)


def to_count(snapshot: ProjectSnapshot) -> int:
    return len(snapshot.items)


def to_field_schema(schema: FieldSchema) -> Dict[str, Any]:
    """Field-schema document: project title plus one entry per field.

    `options` appears only on single-select fields.
    """
    return schema.to_document()
