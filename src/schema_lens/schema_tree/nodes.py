"""Schema tree node definitions.

The tree is stored as an arena: SchemaTree.nodes holds every TreeNode in
display (pre-)order and nodes refer to each other by index. A node's
``parent`` is a plain index, never an owning reference, so upward traversal
does not create ownership cycles.
"""

from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from schema_lens.schema.base import AnySchemaNode

JsonPath = Tuple[Union[str, int], ...]


class TreeNode(BaseModel):
    """A display-ready row of the schema tree.

    Attributes:
        id: Identifier shared with the SchemaNode this row was built from.
        name: Display name. Left empty by the builder and filled by consumers.
        level: Number of tree descents from the root.
        parent: Arena index of the parent row, None for top-level rows.
        children: Arena indices of the child rows. None means leaf (or a
            placeholder that was never expanded).
    """

    model_config = ConfigDict(frozen=False)

    id: str = Field(..., description="Identifier of the node within one build")
    name: str = Field(default="", description="Display name, filled by the consumer")
    level: int = Field(..., description="Depth of the node in the tree")
    parent: Optional[int] = Field(default=None, description="Arena index of the parent")
    children: Optional[List[int]] = Field(default=None, description="Arena indices of children")

    @computed_field  # type: ignore[misc]
    @property
    def can_have_children(self) -> bool:
        """Whether the row can be expanded."""
        return self.children is not None


class MetadataRecord(BaseModel):
    """Schema information attached to one tree node.

    Attributes:
        fragment: Snapshot of the normalized schema fragment.
        path: JSON-pointer path of the fragment within the document.
    """

    fragment: AnySchemaNode
    path: JsonPath = ()

    @property
    def annotations(self) -> dict:
        return self.fragment.annotations

    @property
    def validations(self) -> dict:
        return self.fragment.validations

    def pointer(self) -> str:
        """Render the path as an RFC 6901 JSON pointer."""
        segments = [str(segment).replace("~", "~0").replace("/", "~1") for segment in self.path]
        return "#" + "".join(f"/{segment}" for segment in segments)


class MetadataTable(BaseModel):
    """Per-build mapping from tree node id to its MetadataRecord.

    Records are written once per node. The table lives exactly as long as
    the SchemaTree that owns it.
    """

    records: Dict[str, MetadataRecord] = Field(default_factory=dict)

    def set(self, node_id: str, record: MetadataRecord) -> None:
        if node_id in self.records:
            raise ValueError(f"Metadata for node {node_id!r} is already set")
        self.records[node_id] = record

    def get(self, node_id: str) -> Optional[MetadataRecord]:
        return self.records.get(node_id)

    def __getitem__(self, node_id: str) -> MetadataRecord:
        return self.records[node_id]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.records

    def __len__(self) -> int:
        return len(self.records)


class SchemaTree(BaseModel):
    """Output of one build: the node arena plus its metadata table.

    Attributes:
        nodes: Every row in display order.
        roots: Arena indices of the top-level rows.
        metadata: Schema metadata keyed by node id.
    """

    model_config = ConfigDict(frozen=False)

    nodes: List[TreeNode] = Field(default_factory=list)
    roots: List[int] = Field(default_factory=list)
    metadata: MetadataTable = Field(default_factory=MetadataTable)

    def add_node(self, node_id: str, parent: Optional[int], level: int) -> int:
        """Append a row and link it under ``parent``.

        Args:
            node_id: Identifier of the new row.
            parent: Arena index of the parent row, None for a top-level row.
            level: Depth of the new row.

        Returns:
            The arena index of the new row.
        """
        index = len(self.nodes)
        self.nodes.append(TreeNode(id=node_id, level=level, parent=parent))
        if parent is None:
            self.roots.append(index)
        else:
            self.mark_expandable(parent)
            self.nodes[parent].children.append(index)
        return index

    def mark_expandable(self, index: int) -> None:
        """Give a row an (initially empty) children list."""
        node = self.nodes[index]
        if node.children is None:
            node.children = []

    def children_of(self, index: int) -> List[TreeNode]:
        return [self.nodes[child] for child in self.nodes[index].children or []]

    def parent_of(self, index: int) -> Optional[TreeNode]:
        parent = self.nodes[index].parent
        return None if parent is None else self.nodes[parent]

    def metadata_for(self, node: TreeNode) -> MetadataRecord:
        return self.metadata[node.id]

    def __len__(self) -> int:
        return len(self.nodes)
