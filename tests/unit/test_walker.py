"""Unit tests for the schema walker."""

import copy
import itertools

from schema_lens.schema.base import (
    ArraySchemaNode,
    CombinerSchemaNode,
    ObjectSchemaNode,
    RefSchemaNode,
    ScalarSchemaNode,
    SchemaKind,
)
from schema_lens.schema_tree.walker import inherit_type, walk


def sequential_ids():
    counter = itertools.count()
    return lambda: f"n{next(counter)}"


def test_walk_mapping_yields_single_node():
    """Test that a plain fragment yields exactly one node."""
    nodes = list(walk({"type": "string", "minLength": 1}))

    assert len(nodes) == 1
    assert isinstance(nodes[0], ScalarSchemaNode)
    assert nodes[0].type == "string"
    assert nodes[0].validations == {"minLength": 1}


def test_walk_list_yields_one_node_per_branch_in_order():
    """Test that a branch list yields one node per branch."""
    ids = sequential_ids()
    nodes = list(walk([{"type": "string"}, {"type": "number"}, {"type": "null"}], ids))

    assert [node.type for node in nodes] == ["string", "number", "null"]
    assert [node.id for node in nodes] == ["n0", "n1", "n2"]


def test_walk_skips_non_mappings():
    """Test that malformed entries yield nothing."""
    assert list(walk(None)) == []
    assert list(walk("string")) == []
    assert [node.type for node in walk([1, {"type": "boolean"}])] == ["boolean"]


def test_walk_is_lazy():
    """Test that the walker is a generator that is consumed once."""
    walker = walk([{"type": "string"}, {"type": "number"}])

    assert next(walker).type == "string"
    assert next(walker).type == "number"
    assert list(walker) == []


def test_object_node_infers_type_and_keeps_properties():
    """Test object normalization."""
    properties = {"name": {"type": "string"}}
    (node,) = walk({"properties": properties, "required": ["name"], "title": "Pet"})

    assert isinstance(node, ObjectSchemaNode)
    assert node.kind is SchemaKind.OBJECT
    assert node.type == "object"
    assert node.properties == properties
    assert node.required == ["name"]
    assert node.annotations == {"title": "Pet"}
    assert node.validations == {}


def test_array_node():
    """Test array normalization."""
    (node,) = walk({"items": {"type": "string"}, "maxItems": 3})

    assert isinstance(node, ArraySchemaNode)
    assert node.type == "array"
    assert node.items == {"type": "string"}
    assert node.validations == {"maxItems": 3}


def test_combiner_node_keeps_branches():
    """Test that a combiner is a single node carrying its branch list."""
    branches = [{"type": "string"}, {"type": "integer"}]
    (node,) = walk({"anyOf": branches, "description": "either"})

    assert isinstance(node, CombinerSchemaNode)
    assert node.combiner == "anyOf"
    assert node.branches == branches
    assert node.annotations == {"description": "either"}


def test_malformed_combiner_has_no_branches():
    """Test that a non-list combiner value degrades to no branches."""
    (node,) = walk({"oneOf": {"type": "string"}})

    assert isinstance(node, CombinerSchemaNode)
    assert node.branches == []


def test_ref_node():
    """Test $ref classification."""
    (node,) = walk({"$ref": "#/definitions/Pet"})

    assert isinstance(node, RefSchemaNode)
    assert node.ref == "#/definitions/Pet"
    assert node.is_local
    assert not node.is_root


def test_explicit_type_takes_precedence_over_ref():
    """Test that a typed fragment with a $ref is classified by its type."""
    (node,) = walk({"$ref": "#/definitions/Pet", "type": "object"})

    assert isinstance(node, ObjectSchemaNode)


def test_annotations_include_extensions():
    """Test that x- keys are collected as annotations."""
    (node,) = walk({"type": "string", "x-val": "lol", "default": "a", "format": "email"})

    assert node.annotations == {"x-val": "lol", "default": "a"}
    assert node.validations == {"format": "email"}


def test_malformed_keyword_values_degrade():
    """Test that wrongly-typed keyword values never raise."""
    (node,) = walk({"type": 5, "properties": ["a"], "required": True, "patternProperties": {}})

    assert isinstance(node, ObjectSchemaNode)
    assert node.type == "object"
    assert node.properties is None
    assert node.required is None


def test_walk_does_not_mutate_input():
    """Test that walking leaves the input untouched."""
    schema = {"anyOf": [{"properties": {"a": {}}}], "type": "object"}
    snapshot = copy.deepcopy(schema)

    list(walk(schema))

    assert schema == snapshot


def test_inherit_type_copies_branch():
    """Test that type inheritance works on a shallow copy."""
    branch = {"properties": {"a": {}}}

    inherited = inherit_type(branch, "object")

    assert inherited == {"properties": {"a": {}}, "type": "object"}
    assert "type" not in branch
    assert inherited["properties"] is branch["properties"]


def test_inherit_type_keeps_declared_type():
    """Test that a branch's own type is kept."""
    branch = {"type": "string"}

    assert inherit_type(branch, "object") is branch
    assert inherit_type(branch, None) is branch


def test_inherit_type_leaves_reference_branches_alone():
    """Test that a bare $ref branch is not turned into a typed fragment."""
    branch = {"$ref": "#/definitions/Base"}

    assert inherit_type(branch, "object") is branch


def test_reference_records_inherited_type():
    """Test that the combiner's type is carried on a reference node."""
    (ref,) = walk({"$ref": "#/definitions/Base"}, inherited_type="object")
    (scalar,) = walk({"type": "string"}, inherited_type="object")

    assert isinstance(ref, RefSchemaNode)
    assert ref.ref == "#/definitions/Base"
    assert ref.type == "object"
    assert scalar.type == "string"
