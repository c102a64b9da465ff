"""Base schema classes for schema-lens.

This module defines the normalized schema fragment models produced by the
walker. A SchemaNode is not a validator: it keeps just enough of the
fragment's shape to drive dispatch, plus the annotations and validations a
rendering layer displays next to a row.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from typing_extensions import Annotated

from pydantic import BaseModel, ConfigDict, Field

COMBINERS = ("allOf", "anyOf", "oneOf")

ANNOTATION_KEYWORDS = ("title", "description", "default", "examples")

VALIDATION_KEYWORDS = (
    "format",
    "pattern",
    "minLength",
    "maxLength",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "const",
    "readOnly",
    "writeOnly",
    "deprecated",
)

SchemaType = Union[str, List[str]]


class SchemaKind(str, Enum):
    """Structural kind of a schema fragment, used for dispatch."""

    OBJECT = "object"
    ARRAY = "array"
    COMBINER = "combiner"
    REF = "ref"
    SCALAR = "scalar"


class SchemaNode(BaseModel):
    """A normalized schema fragment with the identifier assigned during traversal.

    Attributes:
        id: Identifier of the node, unique within one build.
        kind: Structural kind the fragment was classified as.
        type: The fragment's declared (or inferred) JSON Schema type.
        enum: Allowed values, when the fragment declares an enum.
        annotations: Descriptive keywords (title, description, default, ...).
        validations: Constraint keywords (minLength, pattern, ...).
    """

    model_config = ConfigDict(frozen=False, populate_by_name=True)

    id: str = Field(..., description="Identifier assigned during traversal")
    kind: SchemaKind = Field(..., description="Structural kind of the fragment")
    type: Optional[SchemaType] = Field(default=None, description="Declared JSON Schema type")
    enum: Optional[List[Any]] = Field(default=None, description="Allowed values")
    annotations: Dict[str, Any] = Field(default_factory=dict)
    validations: Dict[str, Any] = Field(default_factory=dict)


class ObjectSchemaNode(SchemaNode):
    """An object-shaped fragment."""

    kind: Literal[SchemaKind.OBJECT] = SchemaKind.OBJECT
    properties: Optional[Dict[str, Any]] = None
    pattern_properties: Optional[Dict[str, Any]] = Field(default=None, alias="patternProperties")
    additional_properties: Optional[Any] = Field(default=None, alias="additionalProperties")
    required: Optional[List[str]] = None


class ArraySchemaNode(SchemaNode):
    """An array-shaped fragment.

    ``items`` is either a single fragment (every element) or a list of
    fragments (tuple form, one per position).
    """

    kind: Literal[SchemaKind.ARRAY] = SchemaKind.ARRAY
    items: Optional[Any] = None
    additional_items: Optional[Any] = Field(default=None, alias="additionalItems")


class CombinerSchemaNode(SchemaNode):
    """An allOf/anyOf/oneOf fragment together with its ordered branch list."""

    kind: Literal[SchemaKind.COMBINER] = SchemaKind.COMBINER
    combiner: Literal["allOf", "anyOf", "oneOf"]
    branches: List[Any] = Field(default_factory=list)


class RefSchemaNode(SchemaNode):
    """A $ref fragment, never resolved by the engine."""

    kind: Literal[SchemaKind.REF] = SchemaKind.REF
    ref: str = Field(..., alias="$ref")

    @property
    def is_local(self) -> bool:
        """Whether the reference resolves within the same document."""
        return self.ref.startswith("#")

    @property
    def is_root(self) -> bool:
        return self.ref == "#"


class ScalarSchemaNode(SchemaNode):
    """Any fragment without object, array or combiner structure."""

    kind: Literal[SchemaKind.SCALAR] = SchemaKind.SCALAR


AnySchemaNode = Annotated[
    Union[
        ObjectSchemaNode,
        ArraySchemaNode,
        CombinerSchemaNode,
        RefSchemaNode,
        ScalarSchemaNode,
    ],
    Field(discriminator="kind"),
]
