"""Schema tree module for compiling JSON Schema documents into display trees.

This module provides the primary type resolver, the walker, the tree builder
and the node/metadata models the builder produces.
"""

from schema_lens.schema_tree.builder import (
    BuildContext,
    SchemaDepthError,
    SchemaTreeBuilder,
    WalkingOptions,
    build_tree,
    contains_all_of,
    estimate_node_count,
    populate_tree,
)
from schema_lens.schema_tree.nodes import MetadataRecord, MetadataTable, SchemaTree, TreeNode
from schema_lens.schema_tree.primary_type import get_combiner, get_primary_type
from schema_lens.schema_tree.visitor import SchemaTreeVisitor, accept
from schema_lens.schema_tree.walker import walk

__all__ = [
    "BuildContext",
    "SchemaDepthError",
    "SchemaTreeBuilder",
    "WalkingOptions",
    "build_tree",
    "contains_all_of",
    "estimate_node_count",
    "populate_tree",
    "MetadataRecord",
    "MetadataTable",
    "SchemaTree",
    "TreeNode",
    "get_combiner",
    "get_primary_type",
    "SchemaTreeVisitor",
    "accept",
    "walk",
]
