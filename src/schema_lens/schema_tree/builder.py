"""Builder for converting JSON Schema documents to schema trees.

The builder drives the walker over a document, expands combiners, arrays and
objects, and grows a SchemaTree (rows plus metadata) as it goes. Local
references are never followed: they become expandable rows whose expansion
is left to the consumer, which is what keeps circular schemas finite.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from schema_lens.schema.base import (
    ArraySchemaNode,
    CombinerSchemaNode,
    ObjectSchemaNode,
    RefSchemaNode,
    SchemaKind,
    SchemaNode,
)
from schema_lens.schema_tree.nodes import JsonPath, MetadataRecord, SchemaTree, TreeNode
from schema_lens.schema_tree.primary_type import get_combiner, get_primary_type
from schema_lens.schema_tree.walker import (
    IdFactory,
    generate_id,
    inherit_type,
    is_reference,
    walk,
)

logger = logging.getLogger(__name__)

OnNode = Callable[[SchemaNode, Optional[TreeNode], int], bool]

# Keywords whose values map arbitrary names to sub-schemas.
_SCHEMA_MAPS = ("properties", "patternProperties", "definitions", "$defs", "dependencies")
# Keywords whose values are instance data, not sub-schemas.
_DATA_KEYWORDS = ("enum", "const", "default", "examples")


class SchemaDepthError(ValueError):
    """Raised when a document is nested deeper than the builder can recurse."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f"Schema is nested too deeply to build (recursion limit {sys.getrecursionlimit()})"
        )


@dataclass
class WalkingOptions:
    """Options shared by every step of one build.

    Attributes:
        on_node: Optional filter called before a row is emitted. Returning
            False skips the node entirely: no row, no metadata, no recursion.
        ids: Factory for node identifiers.
    """

    on_node: Optional[OnNode] = None
    ids: IdFactory = generate_id


@dataclass(frozen=True)
class BuildContext:
    """Position of the builder within the document."""

    level: int = 0
    path: JsonPath = ()

    def descend(self, *segments: Any) -> "BuildContext":
        """Context for a child row, one level deeper."""
        return BuildContext(level=self.level + 1, path=self.path + segments)

    def extend(self, *segments: Any) -> "BuildContext":
        """Context for a fragment expanded in place on the current row."""
        return BuildContext(level=self.level, path=self.path + segments)


class SchemaTreeBuilder:
    """Grows a SchemaTree from JSON Schema fragments.

    Every call to populate_tree appends to the tree: rows are never removed
    or reordered, so one builder instance corresponds to one build.
    """

    def __init__(self, tree: SchemaTree, options: Optional[WalkingOptions] = None) -> None:
        self.tree = tree
        self.options = options or WalkingOptions()

    def populate_tree(
        self,
        fragment: Any,
        parent: Optional[int],
        context: BuildContext,
        inherited_type: Any = None,
    ) -> None:
        """Emit the rows for ``fragment`` under the row at index ``parent``.

        Args:
            fragment: A JSON Schema fragment. Non-mappings are ignored.
            parent: Arena index of the parent row, None for top-level rows.
            context: Level and path of the fragment.
            inherited_type: ``type`` of the enclosing combiner, if any.
        """
        if not isinstance(fragment, dict):
            return

        parent_node = None if parent is None else self.tree.nodes[parent]
        for node in walk(fragment, self.options.ids, inherited_type):
            on_node = self.options.on_node
            if on_node is not None and not on_node(node, parent_node, context.level):
                continue

            index = self.tree.add_node(node.id, parent, context.level)
            self.tree.metadata.set(node.id, MetadataRecord(fragment=node, path=context.path))
            self._dispatch(index, node, context)

    def _dispatch(self, index: int, node: SchemaNode, context: BuildContext) -> None:
        if isinstance(node, RefSchemaNode):
            if node.is_local and not node.is_root:
                self.tree.mark_expandable(index)
        elif isinstance(node, CombinerSchemaNode):
            self._process_combiner(index, node.combiner, node.branches, node.type, context)
        elif isinstance(node, ArraySchemaNode):
            self._process_array(index, node.items, context)
        elif isinstance(node, ObjectSchemaNode):
            self._process_object(index, node.properties, node.pattern_properties, context)

    def _process_combiner(
        self,
        index: int,
        combiner: str,
        branches: Any,
        combiner_type: Any,
        context: BuildContext,
    ) -> None:
        self.tree.mark_expandable(index)
        if not isinstance(branches, list):
            return
        for i, branch in enumerate(branches):
            self.populate_tree(
                inherit_type(branch, combiner_type),
                index,
                context.descend(combiner, i),
                inherited_type=combiner_type,
            )

    def _process_array(self, index: int, items: Any, context: BuildContext) -> None:
        if isinstance(items, list):
            # Tuple form: one child per position
            self.tree.mark_expandable(index)
            for i, item in enumerate(items):
                self.populate_tree(item, index, context.descend("items", i))
        elif isinstance(items, dict):
            self._process_in_place(index, items, context.extend("items"))

    def _process_in_place(self, index: int, fragment: Dict[str, Any], context: BuildContext) -> None:
        """Expand an array's item schema onto the array's own row."""
        kind = get_primary_type(fragment)
        if kind is SchemaKind.OBJECT:
            self._process_object(
                index, fragment.get("properties"), fragment.get("patternProperties"), context
            )
        elif kind is SchemaKind.ARRAY:
            self._process_array(index, fragment.get("items"), context)
        elif kind is SchemaKind.COMBINER:
            combiner = get_combiner(fragment)
            self._process_combiner(
                index, combiner, fragment[combiner], fragment.get("type"), context
            )

    def _process_object(
        self,
        index: int,
        properties: Any,
        pattern_properties: Any,
        context: BuildContext,
    ) -> None:
        has_properties = isinstance(properties, dict)
        has_pattern_properties = isinstance(pattern_properties, dict)
        if not has_properties and not has_pattern_properties:
            return

        self.tree.mark_expandable(index)
        if has_properties:
            for key, prop in properties.items():
                self.populate_tree(prop, index, context.descend("properties", key))
        if has_pattern_properties:
            for key, prop in pattern_properties.items():
                self.populate_tree(prop, index, context.descend("patternProperties", key))


def populate_tree(
    fragment: Any,
    tree: SchemaTree,
    parent: Optional[int],
    level: int,
    path: JsonPath,
    options: Optional[WalkingOptions] = None,
) -> None:
    """Append the rows for ``fragment`` to ``tree`` under ``parent``.

    Args:
        fragment: A JSON Schema fragment.
        tree: The tree being built; mutated in place.
        parent: Arena index of the parent row, None for top-level rows.
        level: Level of the rows emitted for ``fragment``.
        path: JSON-pointer path of ``fragment`` within the document.
        options: Node filter and id factory.
    """
    builder = SchemaTreeBuilder(tree, options)
    builder.populate_tree(fragment, parent, BuildContext(level=level, path=tuple(path)))


def build_tree(schema: Any, options: Optional[WalkingOptions] = None) -> SchemaTree:
    """Build a fresh SchemaTree for a whole document.

    Args:
        schema: The JSON Schema document.
        options: Node filter and id factory.

    Returns:
        A new SchemaTree with its own metadata table.

    Raises:
        SchemaDepthError: If the document nests deeper than the interpreter's
            recursion limit allows.
    """
    tree = SchemaTree()
    try:
        populate_tree(schema, tree, None, 0, (), options)
    except RecursionError as e:
        raise SchemaDepthError() from e
    logger.debug("Built schema tree with %d nodes", len(tree.nodes))
    return tree


class _NodeCounter:
    """Counts the rows a full build would emit, without allocating any."""

    def __init__(self, limit: Optional[int]) -> None:
        self.limit = limit
        self.total = 0

    @property
    def exhausted(self) -> bool:
        return self.limit is not None and self.total > self.limit

    def count(self, fragment: Any) -> None:
        if not isinstance(fragment, dict) or self.exhausted:
            return
        self.total += 1

        if get_combiner(fragment) is not None:
            self._count_branches(fragment)
        elif is_reference(fragment):
            return
        else:
            self._count_structure(fragment)

    def _count_branches(self, fragment: Dict[str, Any]) -> None:
        branches = fragment[get_combiner(fragment)]
        if isinstance(branches, list):
            for branch in branches:
                self.count(inherit_type(branch, fragment.get("type")))

    def _count_structure(self, fragment: Dict[str, Any]) -> None:
        kind = get_primary_type(fragment)
        if kind is SchemaKind.ARRAY:
            items = fragment.get("items")
            if isinstance(items, list):
                for item in items:
                    self.count(item)
            elif isinstance(items, dict):
                self._count_in_place(items)
        elif kind is SchemaKind.OBJECT:
            for keyword in ("properties", "patternProperties"):
                entries = fragment.get(keyword)
                if isinstance(entries, dict):
                    for prop in entries.values():
                        self.count(prop)

    def _count_in_place(self, fragment: Dict[str, Any]) -> None:
        if get_primary_type(fragment) is SchemaKind.COMBINER:
            self._count_branches(fragment)
        else:
            self._count_structure(fragment)


def estimate_node_count(schema: Any, limit: Optional[int] = None) -> int:
    """Count the rows a full build of ``schema`` would produce.

    Args:
        schema: The JSON Schema document.
        limit: Stop counting once the total exceeds this value. The returned
            count is then ``limit + 1``, which is enough to know the limit is
            exceeded.

    Returns:
        The number of rows, capped at ``limit + 1`` when a limit is given.
    """
    counter = _NodeCounter(limit)
    try:
        counter.count(schema)
    except RecursionError as e:
        raise SchemaDepthError() from e
    return counter.total


def contains_all_of(schema: Any) -> bool:
    """Return True if an allOf combiner appears anywhere in the document.

    Property names are not mistaken for keywords: ``{"properties": {"allOf":
    {...}}}`` does not count.
    """
    try:
        return _contains_all_of(schema)
    except RecursionError as e:
        raise SchemaDepthError() from e


def _contains_all_of(schema: Any) -> bool:
    if isinstance(schema, list):
        return any(_contains_all_of(item) for item in schema)
    if not isinstance(schema, dict):
        return False
    if isinstance(schema.get("allOf"), list):
        return True

    for key, value in schema.items():
        if key in _DATA_KEYWORDS:
            continue
        if key in _SCHEMA_MAPS and isinstance(value, dict):
            if any(_contains_all_of(sub) for sub in value.values()):
                return True
        elif _contains_all_of(value):
            return True
    return False
