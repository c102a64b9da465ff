"""Schema loading for schema-lens.

This module defines the abstract interface for obtaining a JSON Schema
document and a file-based implementation used by the CLI.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Union


class SchemaLoadError(ValueError):
    """Raised when a schema document cannot be read or is not a JSON object."""


class SchemaSource(ABC):
    """Abstract base class for sources of JSON Schema documents."""

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Load the schema document.

        Returns:
            The parsed JSON Schema document.

        Raises:
            SchemaLoadError: If the document cannot be read or parsed.
        """
        raise NotImplementedError("Subclasses must implement load")


class FileSchemaSource(SchemaSource):
    """Reads a JSON Schema document from a file.

    Attributes:
        path: Location of the JSON file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaLoadError(f"Cannot read schema file {self.path}: {e}") from e

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaLoadError(f"Invalid JSON in {self.path}: {e}") from e

        if not isinstance(document, dict):
            raise SchemaLoadError(
                f"Schema document in {self.path} must be a JSON object, "
                f"got {type(document).__name__}"
            )
        return document


def load_schema(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a JSON Schema document from a file.

    Example:
        >>> schema = load_schema("pet.schema.json")
    """
    return FileSchemaSource(path).load()
