"""Schema Lens - Compile JSON Schema documents into display-ready trees."""

from schema_lens.config import Config, load_config
from schema_lens.coordinator.coordinator import BuildCoordinator
from schema_lens.coordinator.executor import (
    OffloadExecutor,
    ProcessOffloadExecutor,
    ThreadOffloadExecutor,
)
from schema_lens.coordinator.messages import BuildRequest, BuildResponse, run_full_build
from schema_lens.schema.base import SchemaKind, SchemaNode
from schema_lens.schema.merge import merge_all_of
from schema_lens.schema_tree.builder import build_tree, estimate_node_count, populate_tree
from schema_lens.schema_tree.nodes import MetadataRecord, SchemaTree, TreeNode
from schema_lens.schema_tree.primary_type import get_primary_type
from schema_lens.schema_tree.walker import walk

__version__ = "0.1.0"

__all__ = [
    "Config",
    "load_config",
    "BuildCoordinator",
    "OffloadExecutor",
    "ProcessOffloadExecutor",
    "ThreadOffloadExecutor",
    "BuildRequest",
    "BuildResponse",
    "run_full_build",
    "SchemaKind",
    "SchemaNode",
    "merge_all_of",
    "build_tree",
    "estimate_node_count",
    "populate_tree",
    "MetadataRecord",
    "SchemaTree",
    "TreeNode",
    "get_primary_type",
    "walk",
]
