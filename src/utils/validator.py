"""
Reference Data Validator Module

Checks colleges.json, careers.json and scholarships.json against the JSON
Schemas in src/schemas/ before the reference store builds records from them.
Every problem in every file is reported in one ConfigurationError so a data
maintainer can fix a directory in one pass.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import SchemaError, ValidationError

from src.models.errors import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"

REFERENCE_KINDS = ("colleges", "careers", "scholarships")


def describe_error(error: ValidationError) -> str:
    """One readable line for a jsonschema error, located by its JSON path."""
    path = " -> ".join(str(p) for p in error.absolute_path) or "(root)"

    if error.validator == "required":
        # "'name' is a required property"
        field = error.message.split("'")[1]
        return f"Missing required field: '{field}' at {path}"
    if error.validator == "type":
        return f"Type mismatch at '{path}': expected {error.validator_value}"
    if error.validator == "enum":
        return f"Invalid value at '{path}': {error.instance!r} (allowed: {error.validator_value})"
    if error.validator in ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum"):
        return f"Value out of range at '{path}': {error.message}"
    return f"Validation error at '{path}': {error.message}"


class ReferenceDataValidator:
    """Schema checks for the three reference data documents."""

    def __init__(self, schema_dir: Optional[Path] = None):
        self.schema_dir = schema_dir or DEFAULT_SCHEMA_DIR
        self._validators: Dict[str, Draft7Validator] = {}

    def validator_for(self, kind: str) -> Draft7Validator:
        """Compiled validator for ``kind`` ("colleges", "careers" or "scholarships").

        Raises:
            ConfigurationError: Unknown kind, or a missing or broken schema file
        """
        if kind in self._validators:
            return self._validators[kind]
        if kind not in REFERENCE_KINDS:
            raise ConfigurationError(f"Unknown reference data kind: {kind}")

        schema_path = self.schema_dir / f"{kind}_schema.json"
        try:
            with open(schema_path, "r", encoding="utf-8") as f:
                schema = json.load(f)
            Draft7Validator.check_schema(schema)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Schema file not found: {schema_path}") from e
        except (json.JSONDecodeError, SchemaError) as e:
            raise ConfigurationError(f"Invalid schema {schema_path.name}: {e}") from e

        validator = Draft7Validator(schema, format_checker=FormatChecker())
        self._validators[kind] = validator
        logger.debug("schema_loaded", kind=kind, schema_path=str(schema_path))
        return validator

    def check(self, kind: str, document: Any) -> List[str]:
        """Readable problems with ``document``, in document order; empty when valid."""
        errors = sorted(
            self.validator_for(kind).iter_errors(document),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        return [describe_error(e) for e in errors]

    def validate(self, kind: str, document: Any) -> None:
        """
        Raises:
            ConfigurationError: Listing every schema violation
        """
        problems = self.check(kind, document)
        if problems:
            logger.warning("validation_failed", kind=kind, error_count=len(problems))
            lines = [f"Reference data validation failed for {kind}:"]
            lines.extend(f"  * {p}" for p in problems)
            raise ConfigurationError(
                "\n".join(lines),
                details={"kind": kind, "error_count": len(problems)},
            )

    def read(self, path: Path) -> Any:
        """Parse one reference file.

        Raises:
            ConfigurationError: Missing file or invalid JSON
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Reference data file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in {path.name} (line {e.lineno}, column {e.colno}): {e.msg}"
            ) from e

    def validate_directory(self, data_dir: Path) -> Dict[str, Any]:
        """
        Read and check <kind>.json for every reference kind in ``data_dir``.

        Returns:
            {"colleges": {...}, "careers": {...}, "scholarships": {...}}

        Raises:
            ConfigurationError: One error covering every unreadable or invalid
                file; ``details["files"]`` maps file names to their problems
        """
        documents: Dict[str, Any] = {}
        problems: Dict[str, List[str]] = {}

        for kind in REFERENCE_KINDS:
            path = data_dir / f"{kind}.json"
            try:
                document = self.read(path)
            except ConfigurationError as e:
                problems[path.name] = [e.message]
                continue
            file_problems = self.check(kind, document)
            if file_problems:
                problems[path.name] = file_problems
            else:
                documents[kind] = document

        if problems:
            logger.error(
                "reference_data_invalid",
                data_dir=str(data_dir),
                files=sorted(problems),
            )
            lines = [f"Reference data in {data_dir} is invalid:"]
            for file_name, file_problems in problems.items():
                lines.append(f"{file_name}:")
                lines.extend(f"  * {p}" for p in file_problems)
            raise ConfigurationError("\n".join(lines), details={"files": problems})

        logger.info("reference_data_validated", data_dir=str(data_dir))
        return documents
