"""Visitor pattern for processing the schema nodes behind tree rows.

This module provides the abstract visitor interface that consumers implement
to derive per-row output (labels, icons, summaries) from the SchemaNode
stored in a row's metadata.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from schema_lens.schema.base import (
    ArraySchemaNode,
    CombinerSchemaNode,
    ObjectSchemaNode,
    RefSchemaNode,
    SchemaKind,
    SchemaNode,
)

T = TypeVar("T")


class SchemaTreeVisitor(ABC, Generic[T]):
    """Abstract base class for schema node visitors."""

    @abstractmethod
    def visit_object(self, node: ObjectSchemaNode) -> T:
        """Visit an object node.

        Args:
            node: The object node to visit

        Returns:
            Processed result
        """
        pass

    @abstractmethod
    def visit_array(self, node: ArraySchemaNode) -> T:
        """Visit an array node.

        Args:
            node: The array node to visit

        Returns:
            Processed result
        """
        pass

    @abstractmethod
    def visit_combiner(self, node: CombinerSchemaNode) -> T:
        """Visit an allOf/anyOf/oneOf node."""
        pass

    @abstractmethod
    def visit_ref(self, node: RefSchemaNode) -> T:
        """Visit a $ref node."""
        pass

    @abstractmethod
    def visit_scalar(self, node: SchemaNode) -> T:
        """Visit a node without children structure."""
        pass


def accept(node: SchemaNode, visitor: SchemaTreeVisitor[T]) -> T:
    """Dispatch ``node`` to the visitor method matching its kind."""
    if node.kind == SchemaKind.OBJECT:
        return visitor.visit_object(node)  # type: ignore[arg-type]
    if node.kind == SchemaKind.ARRAY:
        return visitor.visit_array(node)  # type: ignore[arg-type]
    if node.kind == SchemaKind.COMBINER:
        return visitor.visit_combiner(node)  # type: ignore[arg-type]
    if node.kind == SchemaKind.REF:
        return visitor.visit_ref(node)  # type: ignore[arg-type]
    return visitor.visit_scalar(node)
