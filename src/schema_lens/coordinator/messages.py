"""Messages exchanged with the offload executor.

A BuildRequest is a self-contained, frozen snapshot: the executor never
shares mutable state with the side that issued it. A BuildResponse carries
the finished rows and their metadata back, tagged with the request's
instance id so stale answers can be recognised.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from schema_lens.schema.merge import merge_all_of
from schema_lens.schema_tree.builder import SchemaDepthError, build_tree
from schema_lens.schema_tree.nodes import MetadataTable, SchemaTree, TreeNode


class BuildRequest(BaseModel):
    """Request for a full, untruncated build of a schema document.

    Attributes:
        instance_id: Token identifying this request.
        document: The schema document (serialized as ``schema``).
        merge_all_of: Whether allOf combiners are merged before building.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    instance_id: str = Field(..., description="Token identifying this request")
    document: Dict[str, Any] = Field(..., alias="schema", description="Schema document")
    merge_all_of: bool = Field(default=True, description="Merge allOf combiners first")


class BuildResponse(BaseModel):
    """Finished rows for a BuildRequest."""

    instance_id: str
    nodes: List[TreeNode] = Field(default_factory=list)
    metadata: MetadataTable = Field(default_factory=MetadataTable)

    @classmethod
    def from_tree(cls, instance_id: str, tree: SchemaTree) -> "BuildResponse":
        return cls(instance_id=instance_id, nodes=tree.nodes, metadata=tree.metadata)

    def to_tree(self) -> SchemaTree:
        """Reassemble the SchemaTree carried by this response."""
        roots = [index for index, node in enumerate(self.nodes) if node.parent is None]
        return SchemaTree(nodes=self.nodes, roots=roots, metadata=self.metadata)


def run_full_build(request: BuildRequest) -> BuildResponse:
    """Perform the full build described by ``request``.

    This is the unit of work run by offload executors. It uses the same
    builder as the synchronous path; only allOf merging is added on top.
    """
    document = request.document
    if request.merge_all_of:
        try:
            document = merge_all_of(document)
        except RecursionError as e:
            raise SchemaDepthError() from e
    tree = build_tree(document)
    return BuildResponse.from_tree(request.instance_id, tree)
