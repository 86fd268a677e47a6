"""
JSON Schema validation for compiled flow graphs
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema.validators import Draft202012Validator

logger = logging.getLogger(__name__)


@dataclass
class ValidationIssue:
    """A schema violation found in a serialized graph"""
    code: str
    path: str
    message: str
    meta: Optional[Dict[str, Any]] = None


class GraphSchemaValidator:
    """Validates the JSON form of compiled flow graphs against the graph schema"""

    def __init__(self, schema_path: Optional[Union[str, Path]] = None):
        self.schema = None
        self.validator = None
        self._load_schema(schema_path)

    def _load_schema(self, schema_path: Optional[Union[str, Path]] = None):
        """Load the JSON schema from file or use the packaged schema"""
        if schema_path is None:
            schema_path = Path(__file__).parent / "schema.json"

        try:
            with open(schema_path, 'r') as f:
                self.schema = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load schema from {schema_path}: {e}")
            raise

        Draft202012Validator.check_schema(self.schema)
        self.validator = Draft202012Validator(self.schema)
        logger.debug(f"Schema loaded successfully from {schema_path}")

    def validate_graph(self, graph_doc: Any) -> List[ValidationIssue]:
        """
        Validate a serialized graph against the schema

        Args:
            graph_doc: The JSON form of a compiled flow graph

        Returns:
            List of validation issues (empty if valid)
        """
        if not self.schema or not self.validator:
            raise RuntimeError("Schema not loaded")

        errors = []

        try:
            self.validator.validate(graph_doc)
        except JSONSchemaValidationError as e:
            errors.extend(self._convert_jsonschema_errors(e))

        return errors

    def is_valid(self, graph_doc: Any) -> bool:
        """Check a serialized graph without collecting issues"""
        return self.validator.is_valid(graph_doc)

    def _convert_jsonschema_errors(self, error: JSONSchemaValidationError) -> List[ValidationIssue]:
        """Convert JSON Schema validation errors to our format"""
        errors = [ValidationIssue(
            code="SCHEMA_VALIDATION_ERROR",
            path=self._format_error_path(error.absolute_path),
            message=error.message,
            meta={
                "schema_path": list(error.schema_path),
                "validator": error.validator,
            }
        )]

        # Handle sub-errors recursively
        for sub_error in error.context or []:
            errors.extend(self._convert_jsonschema_errors(sub_error))

        return errors

    def _format_error_path(self, path) -> str:
        """Format the error path for display"""
        if not path:
            return "root"

        formatted_path = "root"
        for part in path:
            if isinstance(part, int):
                formatted_path += f"[{part}]"
            else:
                formatted_path += f".{part}"

        return formatted_path

    def get_schema_info(self) -> Dict[str, Any]:
        """Get information about the loaded schema"""
        if not self.schema:
            return {}

        return {
            "title": self.schema.get("title"),
            "description": self.schema.get("description"),
            "id": self.schema.get("$id"),
            "schema": self.schema.get("$schema"),
        }


# Global schema validator instance
schema_validator = GraphSchemaValidator()
