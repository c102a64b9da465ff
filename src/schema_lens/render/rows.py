"""Row rendering for schema trees.

The builder leaves every row's name empty and knows nothing about display.
This module is the consumer side: it derives a display name from a row's
JSON-pointer path and a type label from its schema node.
"""

from typing import Any, Iterator, NamedTuple

from schema_lens.schema.base import (
    COMBINERS,
    ArraySchemaNode,
    CombinerSchemaNode,
    ObjectSchemaNode,
    RefSchemaNode,
    SchemaNode,
)
from schema_lens.schema_tree.nodes import JsonPath, SchemaTree
from schema_lens.schema_tree.visitor import SchemaTreeVisitor, accept


class Row(NamedTuple):
    """A flattened, printable view of one tree row."""

    name: str
    label: str
    pointer: str
    level: int
    expandable: bool


def _format_type(declared: Any, fallback: str = "any") -> str:
    if isinstance(declared, list):
        return "|".join(declared) if declared else fallback
    return declared or fallback


def _ref_name(ref: str) -> str:
    return ref.rstrip("/").split("/")[-1] or ref


class RowLabelVisitor(SchemaTreeVisitor[str]):
    """Schema node visitor that produces the type label shown for a row."""

    def visit_object(self, node: ObjectSchemaNode) -> str:
        return _format_type(node.type, "object")

    def visit_array(self, node: ArraySchemaNode) -> str:
        """Label arrays with their element type, e.g. ``array[string]``.

        Args:
            node: The array node

        Returns:
            The array label
        """
        items = node.items
        if isinstance(items, list):
            return "array[" + ", ".join(self._item_label(item) for item in items) + "]"
        if isinstance(items, dict):
            return f"array[{self._item_label(items)}]"
        return _format_type(node.type, "array")

    def visit_combiner(self, node: CombinerSchemaNode) -> str:
        if node.type:
            return f"{node.combiner}<{_format_type(node.type)}>"
        return node.combiner

    def visit_ref(self, node: RefSchemaNode) -> str:
        return f"$ref({node.ref})"

    def visit_scalar(self, node: SchemaNode) -> str:
        if node.type is None and node.enum is not None:
            return "enum"
        return _format_type(node.type)

    def _item_label(self, item: Any) -> str:
        if not isinstance(item, dict):
            return "any"
        if isinstance(item.get("$ref"), str):
            return _ref_name(item["$ref"])
        for combiner in COMBINERS:
            if combiner in item:
                return combiner
        if "items" in item:
            return "array"
        if "properties" in item or "patternProperties" in item:
            return "object"
        return _format_type(item.get("type"))


def name_for_path(path: JsonPath) -> str:
    """Derive the display name of a row from its pointer path.

    Example:
        >>> name_for_path(("properties", "user", "properties", "email"))
        'email'
        >>> name_for_path(("items", 1))
        '[1]'
    """
    if len(path) < 2:
        return ""
    keyword, key = path[-2], path[-1]
    if keyword in ("properties", "patternProperties"):
        return str(key)
    if keyword == "items":
        return f"[{key}]"
    if keyword in COMBINERS:
        return f"{keyword}[{key}]"
    return str(key)


def fill_names(tree: SchemaTree) -> SchemaTree:
    """Fill in the display name of every row of ``tree``.

    Returns:
        The same tree, for chaining.
    """
    for node in tree.nodes:
        node.name = name_for_path(tree.metadata[node.id].path)
    return tree


def iter_rows(tree: SchemaTree) -> Iterator[Row]:
    """Yield a printable Row for every node in display order."""
    labeler = RowLabelVisitor()
    for node in tree.nodes:
        record = tree.metadata[node.id]
        yield Row(
            name=node.name or name_for_path(record.path),
            label=accept(record.fragment, labeler),
            pointer=record.pointer(),
            level=node.level,
            expandable=node.can_have_children,
        )
