"""Schema models, loading and allOf merging."""

from schema_lens.schema.base import (
    AnySchemaNode,
    ArraySchemaNode,
    CombinerSchemaNode,
    ObjectSchemaNode,
    RefSchemaNode,
    ScalarSchemaNode,
    SchemaKind,
    SchemaNode,
)
from schema_lens.schema.loader import FileSchemaSource, SchemaLoadError, SchemaSource, load_schema
from schema_lens.schema.merge import merge_all_of

__all__ = [
    "AnySchemaNode",
    "ArraySchemaNode",
    "CombinerSchemaNode",
    "ObjectSchemaNode",
    "RefSchemaNode",
    "ScalarSchemaNode",
    "SchemaKind",
    "SchemaNode",
    "FileSchemaSource",
    "SchemaLoadError",
    "SchemaSource",
    "load_schema",
    "merge_all_of",
]
