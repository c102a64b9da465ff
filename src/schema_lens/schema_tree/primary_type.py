"""Primary type resolution for schema fragments.

Every fragment is classified into exactly one structural kind. The order of
the checks below is fixed: a fragment that is both combiner-shaped and
object-shaped is a combiner, one that declares both ``items`` and
``properties`` is an array.
"""

from typing import Any, Optional

from schema_lens.schema.base import COMBINERS, SchemaKind


def _declares_type(fragment: dict, name: str) -> bool:
    declared = fragment.get("type")
    if isinstance(declared, list):
        return name in declared
    return declared == name


def get_combiner(fragment: Any) -> Optional[str]:
    """Return the first combiner keyword present on the fragment, if any."""
    if not isinstance(fragment, dict):
        return None
    for combiner in COMBINERS:
        if combiner in fragment:
            return combiner
    return None


def get_primary_type(fragment: Any) -> SchemaKind:
    """Classify a schema fragment into its primary structural kind.

    Args:
        fragment: A JSON Schema fragment. Anything that is not a mapping is
            treated as a scalar.

    Returns:
        One of SchemaKind.COMBINER, ARRAY, OBJECT or SCALAR.
    """
    if not isinstance(fragment, dict):
        return SchemaKind.SCALAR

    if get_combiner(fragment) is not None:
        return SchemaKind.COMBINER

    if "items" in fragment or _declares_type(fragment, "array"):
        return SchemaKind.ARRAY

    if (
        "properties" in fragment
        or "patternProperties" in fragment
        or _declares_type(fragment, "object")
    ):
        return SchemaKind.OBJECT

    return SchemaKind.SCALAR
