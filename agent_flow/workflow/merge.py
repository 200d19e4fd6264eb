"""
Cascade of a workflow's global configuration into a node's form data.

Global values only fill gaps:
    - array fields: global + node values, de-duplicated
    - everything else: node value wins unless it is missing, None or ""
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .models import AgentSchema, FormData

# Node field name -> path inside the global configuration.
DEFAULT_FIELD_PATHS: Dict[str, List[str]] = {
    "tone": ["brandVoice", "tone"],
    "guidelines": ["brandVoice", "guidelines"],
    "personality": ["brandVoice", "personality"],
    "keywords": ["seoStrategy", "primaryKeywords"],
    "secondaryKeywords": ["seoStrategy", "secondaryKeywords"],
}

_MISSING = object()


def merge_global_config(
    global_config: Optional[Mapping[str, Any]],
    node_data: Optional[Mapping[str, Any]],
    schema: AgentSchema,
    field_paths: Optional[Mapping[str, Sequence[str]]] = None,
) -> FormData:
    """
    Return the effective form data for a node.

    Nodes without data never receive global values; the cascade is
    one-directional and only enriches nodes that already have an entry.
    """
    if not global_config:
        return dict(node_data or {})
    if not node_data:
        return {}

    paths = DEFAULT_FIELD_PATHS if field_paths is None else field_paths
    merged: FormData = dict(node_data)

    for field, definition in schema.properties().items():
        candidate = _resolve_global_value(global_config, field, paths)
        if candidate is _MISSING:
            continue

        if _is_array_field(definition):
            merged[field] = _union(_as_list(candidate), _as_list(merged.get(field)))
        elif _is_empty(merged.get(field)):
            merged[field] = candidate

    return merged


def _resolve_global_value(global_config: Mapping[str, Any], field: str,
                          paths: Mapping[str, Sequence[str]]) -> Any:
    direct = global_config.get(field)
    if not _is_empty(direct):
        return direct

    path = paths.get(field)
    if not path:
        return _MISSING
    current: Any = global_config
    for segment in path:
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return _MISSING if current is None else current


def _is_array_field(definition: Any) -> bool:
    if not isinstance(definition, Mapping):
        return False
    declared = definition.get("type")
    if isinstance(declared, list):
        return "array" in declared
    return declared == "array"


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def _union(first: List[Any], second: List[Any]) -> List[Any]:
    """ Order-preserving union; the first occurrence of each value wins. """
    seen = set()
    out: List[Any] = []
    for item in list(first) + list(second):
        key = canonical_json(item)
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out
