"""Walker enumerating the logical schema nodes of a fragment.

The walker turns raw JSON Schema fragments into SchemaNode instances with
fresh identifiers. Paths are not attached here; they depend on where the
tree builder is in the document.
"""

import uuid
from typing import Any, Callable, Dict, Iterator, Optional

from schema_lens.schema.base import (
    ANNOTATION_KEYWORDS,
    VALIDATION_KEYWORDS,
    ArraySchemaNode,
    CombinerSchemaNode,
    ObjectSchemaNode,
    RefSchemaNode,
    ScalarSchemaNode,
    SchemaKind,
    SchemaNode,
    SchemaType,
)
from schema_lens.schema_tree.primary_type import get_combiner, get_primary_type

IdFactory = Callable[[], str]


def generate_id() -> str:
    """Return a random node identifier."""
    return uuid.uuid4().hex


def get_annotations(fragment: Dict[str, Any]) -> Dict[str, Any]:
    """Collect descriptive keywords and ``x-`` extensions of a fragment."""
    annotations = {key: fragment[key] for key in ANNOTATION_KEYWORDS if key in fragment}
    for key, value in fragment.items():
        if isinstance(key, str) and key.startswith("x-"):
            annotations[key] = value
    return annotations


def get_validations(fragment: Dict[str, Any]) -> Dict[str, Any]:
    """Collect constraint keywords of a fragment."""
    return {key: fragment[key] for key in VALIDATION_KEYWORDS if key in fragment}


def inherit_type(branch: Any, combiner_type: Any) -> Any:
    """Give a combiner branch the combiner's ``type`` when it declares none.

    The branch is never mutated: a shallow copy is returned when a type has
    to be injected, the branch itself otherwise. Reference branches are
    returned as they are so they still classify as references; the walker
    records the inherited type on the reference node instead.
    """
    if combiner_type is None or not isinstance(branch, dict) or branch.get("type"):
        return branch
    if is_reference(branch):
        return branch
    return {**branch, "type": combiner_type}


def is_reference(fragment: Dict[str, Any]) -> bool:
    """Whether ``fragment`` is a bare ``$ref`` (no ``type`` of its own)."""
    return isinstance(fragment.get("$ref"), str) and "type" not in fragment


def _type_of(fragment: Dict[str, Any], default: Optional[str] = None) -> Optional[SchemaType]:
    declared = fragment.get("type")
    if isinstance(declared, str):
        return declared
    if isinstance(declared, list) and all(isinstance(item, str) for item in declared):
        return declared
    return default


def _mapping(fragment: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = fragment.get(key)
    return value if isinstance(value, dict) else None


def process_node(
    fragment: Dict[str, Any],
    ids: IdFactory = generate_id,
    inherited_type: Any = None,
) -> SchemaNode:
    """Classify a single fragment and build its SchemaNode.

    Args:
        fragment: A JSON Schema mapping.
        ids: Factory for node identifiers.
        inherited_type: ``type`` of the enclosing combiner, recorded on
            reference nodes.

    Returns:
        The SchemaNode subclass matching the fragment's kind.
    """
    common = {
        "id": ids(),
        "annotations": get_annotations(fragment),
        "validations": get_validations(fragment),
    }
    if "enum" in fragment and isinstance(fragment["enum"], list):
        common["enum"] = fragment["enum"]

    combiner = get_combiner(fragment)
    if combiner is not None:
        branches = fragment[combiner]
        return CombinerSchemaNode(
            combiner=combiner,
            branches=branches if isinstance(branches, list) else [],
            type=_type_of(fragment),
            **common,
        )

    if is_reference(fragment):
        return RefSchemaNode(
            ref=fragment["$ref"], type=_type_of({"type": inherited_type}), **common
        )

    kind = get_primary_type(fragment)
    if kind is SchemaKind.ARRAY:
        return ArraySchemaNode(
            type=_type_of(fragment, "array"),
            items=fragment.get("items"),
            additional_items=fragment.get("additionalItems"),
            **common,
        )
    if kind is SchemaKind.OBJECT:
        required = fragment.get("required")
        return ObjectSchemaNode(
            type=_type_of(fragment, "object"),
            properties=_mapping(fragment, "properties"),
            pattern_properties=_mapping(fragment, "patternProperties"),
            additional_properties=fragment.get("additionalProperties"),
            required=required if isinstance(required, list) else None,
            **common,
        )
    return ScalarSchemaNode(type=_type_of(fragment), **common)


def walk(
    schema: Any, ids: IdFactory = generate_id, inherited_type: Any = None
) -> Iterator[SchemaNode]:
    """Yield the logical schema nodes represented by ``schema``.

    A mapping yields exactly one node. A list (the branches of a combiner,
    or tuple-form ``items``) yields one node per mapping element, in
    declaration order. Anything else yields nothing.

    Args:
        schema: A fragment or a list of fragments.
        ids: Factory for node identifiers.
        inherited_type: ``type`` of the enclosing combiner, if any.

    Yields:
        SchemaNode instances with fresh identifiers.
    """
    if isinstance(schema, list):
        for segment in schema:
            yield from walk(segment, ids, inherited_type)
    elif isinstance(schema, dict):
        yield process_node(schema, ids, inherited_type)
