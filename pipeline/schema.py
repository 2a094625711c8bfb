"""Field-schema parsing shared by extraction and discovery."""

import logging
from typing import Any, Dict, List

from contracts import FieldDescriptor, FieldKind

logger = logging.getLogger(__name__)

_TYPENAME_KINDS = {
    "ProjectV2SingleSelectField": FieldKind.SINGLE_SELECT.value,
    "ProjectV2IterationField": FieldKind.ITERATION.value,
}


def field_kind(node: Dict[str, Any]) -> str:
    """Work out a field node's kind from `kind`, `dataType` or `__typename`."""
    kind = node.get("kind")
    if kind:
        return str(kind).lower()
    data_type = node.get("dataType")
    if data_type:
        return str(data_type).lower()
    kind = _TYPENAME_KINDS.get(node.get("__typename", ""))
    if kind:
        return kind
    return FieldKind.TEXT.value


def _option_names(options: Any) -> List[str]:
    names = []
    for option in options or []:
        if isinstance(option, dict):
            name = option.get("name")
        else:
            name = option
        if name is not None:
            names.append(str(name))
    return names


def parse_field_schema(nodes: List[Any]) -> List[FieldDescriptor]:
    """Build field descriptors from field-structure nodes.

    Nodes without a name (unselected union members come back as `{}`) are
    ignored, as are repeated names after the first.
    """
    descriptors: List[FieldDescriptor] = []
    seen = set()
    for node in nodes:
        if not isinstance(node, dict) or not node.get("name"):
            continue
        name = str(node["name"])
        if name in seen:
            logger.warning("Field '%s' appears twice in project schema; keeping the first", name)
            continue
        seen.add(name)
        kind = field_kind(node)
        options = None
        if kind == FieldKind.SINGLE_SELECT.value:
            options = _option_names(node.get("options"))
        descriptors.append(FieldDescriptor(name=name, kind=kind, options=options))
    return descriptors
