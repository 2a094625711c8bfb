"""Errors raised by pipeline stages.

All of them are local to one pipeline invocation; nothing here is fatal to a
long-running process.
"""

from typing import Iterable, List, Optional


class ProjectLensError(Exception):
    """Base class for every error Project Lens raises on purpose."""


class InvalidDocumentError(ProjectLensError):
    """The input document has no recognizable project envelope."""


class MalformedItemError(ProjectLensError):
    """A single item could not be normalized.

    Raised by the extractor for one item; batch extraction records it and
    moves on to the item's siblings.
    """

    def __init__(self, reason: str, item_id: Optional[str] = None):
        self.reason = reason
        self.item_id = item_id
        where = f"item {item_id}" if item_id else "item"
        super().__init__(f"Malformed {where}: {reason}")


class UnknownFacetError(ProjectLensError):
    """A filter or discovery request named a field the project does not have.

    Distinct from a field that exists but carries no values.
    """

    def __init__(self, field: str, known: Iterable[str] = ()):
        self.field = field
        self.known: List[str] = sorted(set(known))
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"Unknown field '{field}'{hint}")
