"""JSON Schema validation for launchkit data files.

The remote catalog and the installed-app ledger are validated before
they are turned into domain objects; settings.json is not, because it is
read tolerantly field by field.
"""

import logging
from pathlib import Path
from typing import Any

import orjson
from jsonschema import Draft7Validator, ValidationError
from jsonschema.exceptions import best_match

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent
CATALOG_SCHEMA_PATH = SCHEMA_DIR / "catalog.schema.json"
CATALOG_APP_SCHEMA_PATH = SCHEMA_DIR / "catalog_app.schema.json"
LEDGER_SCHEMA_PATH = SCHEMA_DIR / "ledger.schema.json"


class SchemaValidationError(Exception):
    """Raised when a document does not match its JSON schema."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        schema_type: str | None = None,
    ) -> None:
        """Initialize schema validation error.

        Args:
            message: Error message
            path: JSON path where the error occurred
            schema_type: Type of schema being validated

        """
        self.path = path
        self.schema_type = schema_type
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with path information."""
        parts = []
        if self.schema_type:
            parts.append(f"[{self.schema_type}]")
        if self.path:
            parts.append(f"at '{self.path}'")
        if parts:
            return f"{' '.join(parts)}: {super().__str__()}"
        return super().__str__()


class DocumentValidator:
    """Validates catalog and ledger documents against JSON schemas."""

    def __init__(self) -> None:
        """Initialize validator with loaded schemas."""
        self._validators = {
            "catalog": Draft7Validator(
                self._load_schema(CATALOG_SCHEMA_PATH)
            ),
            "catalog_app": Draft7Validator(
                self._load_schema(CATALOG_APP_SCHEMA_PATH)
            ),
            "ledger": Draft7Validator(self._load_schema(LEDGER_SCHEMA_PATH)),
        }

    @staticmethod
    def _load_schema(schema_path: Path) -> dict[str, Any]:
        """Load a JSON schema from the package.

        Raises:
            FileNotFoundError: If the schema file doesn't exist
            ValueError: If the schema JSON is invalid

        """
        if not schema_path.exists():
            msg = f"Schema file not found: {schema_path}"
            raise FileNotFoundError(msg)

        try:
            schema: dict[str, Any] = orjson.loads(schema_path.read_bytes())
        except orjson.JSONDecodeError as e:
            msg = f"Invalid JSON in schema file {schema_path}: {e}"
            raise ValueError(msg) from e
        return schema

    @staticmethod
    def _format_validation_error(error: ValidationError) -> str:
        """Turn a jsonschema error into a short, readable message."""
        path = (
            ".".join(str(p) for p in error.absolute_path)
            if error.absolute_path
            else "root"
        )

        message = error.message
        if error.validator == "required":
            missing = (
                error.message.split("'")[1]
                if "'" in error.message
                else "unknown"
            )
            message = f"Missing required field: '{missing}'"
        elif error.validator == "type":
            expected_type = error.validator_value
            actual = type(error.instance).__name__
            message = f"Expected type '{expected_type}', got '{actual}'"

        return f"{message} (at '{path}')"

    def validate(
        self, schema_type: str, document: Any, label: str | None = None
    ) -> None:
        """Validate ``document`` against the named schema.

        Args:
            schema_type: ``catalog``, ``catalog_app`` or ``ledger``
            document: Parsed JSON document
            label: Optional name used in the error message

        Raises:
            SchemaValidationError: If validation fails

        """
        validator = self._validators[schema_type]
        errors = list(validator.iter_errors(document))
        if not errors:
            logger.debug("%s validation passed: %s", schema_type, label or "-")
            return

        best_error = best_match(errors)
        error_msg = self._format_validation_error(best_error)
        if label:
            error_msg = f"Invalid {schema_type} '{label}': {error_msg}"

        path = (
            ".".join(str(p) for p in best_error.absolute_path)
            if best_error.absolute_path
            else None
        )
        raise SchemaValidationError(
            error_msg, path=path, schema_type=schema_type
        )


_validator: DocumentValidator | None = None


def get_validator() -> DocumentValidator:
    """Get or create the shared validator instance."""
    global _validator  # noqa: PLW0603
    if _validator is None:
        _validator = DocumentValidator()
    return _validator


def validate_catalog(document: Any) -> None:
    """Validate the top-level shape of a catalog document.

    Raises:
        SchemaValidationError: If validation fails

    """
    get_validator().validate("catalog", document)


def validate_catalog_app(entry: Any) -> None:
    """Validate one catalog entry.

    Raises:
        SchemaValidationError: If validation fails

    """
    label = entry.get("id") if isinstance(entry, dict) else None
    get_validator().validate("catalog_app", entry, label)


def validate_ledger(document: Any) -> None:
    """Validate the installed-app ledger.

    Raises:
        SchemaValidationError: If validation fails

    """
    get_validator().validate("ledger", document)
