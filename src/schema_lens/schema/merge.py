"""allOf merging for JSON Schema documents.

Folding an ``allOf`` into its parent fragment turns a combiner row with
several partial branches into a single object row, which is what a reader
of the rendered tree expects. Merging is only attempted when every branch
is a plain mapping: branches holding a ``$ref`` would need resolution,
which the engine never performs, so such combiners are left untouched.
"""

from typing import Any, Dict, List

_SCHEMA_MAPS = ("properties", "patternProperties", "definitions", "$defs")
_SCHEMA_LISTS = ("allOf", "anyOf", "oneOf")
_SCHEMA_VALUES = ("items", "additionalItems", "additionalProperties", "not")


def _merge_nested(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Merge allOf combiners in every sub-schema of ``schema``."""
    merged = dict(schema)
    for key in _SCHEMA_MAPS:
        value = merged.get(key)
        if isinstance(value, dict):
            merged[key] = {name: merge_all_of(sub) for name, sub in value.items()}
    for key in _SCHEMA_LISTS:
        value = merged.get(key)
        if isinstance(value, list):
            merged[key] = [merge_all_of(sub) for sub in value]
    for key in _SCHEMA_VALUES:
        value = merged.get(key)
        if isinstance(value, list):
            merged[key] = [merge_all_of(sub) for sub in value]
        elif isinstance(value, dict):
            merged[key] = merge_all_of(value)
    return merged


def _is_mergeable(branches: Any) -> bool:
    return (
        isinstance(branches, list)
        and len(branches) > 0
        and all(isinstance(branch, dict) and "$ref" not in branch for branch in branches)
    )


def _union(first: List[Any], second: List[Any]) -> List[Any]:
    return first + [item for item in second if item not in first]


def merge_fragments(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Fold ``source`` into ``target`` and return the result.

    Neither argument is mutated. Property maps are unioned (a property
    declared on both sides is merged recursively), ``required`` lists are
    unioned in order, and for every other keyword the value already present
    on ``target`` wins.

    Args:
        target: The fragment being built up.
        source: The fragment folded into it.

    Returns:
        A new fragment.
    """
    merged = dict(target)
    for key, value in source.items():
        if key not in merged:
            merged[key] = value
        elif key in ("properties", "patternProperties") and isinstance(value, dict):
            existing = merged[key] if isinstance(merged[key], dict) else {}
            combined = dict(existing)
            for name, sub in value.items():
                if name in combined and isinstance(combined[name], dict) and isinstance(sub, dict):
                    combined[name] = merge_fragments(combined[name], sub)
                else:
                    combined.setdefault(name, sub)
            merged[key] = combined
        elif key == "required" and isinstance(value, list) and isinstance(merged[key], list):
            merged[key] = _union(merged[key], value)
    return merged


def merge_all_of(schema: Any) -> Any:
    """Return a copy of ``schema`` with mergeable allOf combiners folded in.

    Args:
        schema: A JSON Schema document or fragment. Never mutated.

    Returns:
        The merged document. Non-mapping input is returned unchanged.
    """
    if not isinstance(schema, dict):
        return schema

    merged = _merge_nested(schema)
    branches = merged.get("allOf")
    if not _is_mergeable(branches):
        return merged

    result = {key: value for key, value in merged.items() if key != "allOf"}
    for branch in branches:
        result = merge_fragments(result, branch)
    return result
