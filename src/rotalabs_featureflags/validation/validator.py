"""Validation of feature flag configuration documents.

Validation runs in two passes. The first checks the document structure
against the JSON Schema; the second checks that every stage referenced by a
feature is declared, which the schema cannot express. A document is accepted
only if both passes succeed.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from jsonschema import Draft7Validator

from rotalabs_featureflags.core.config import (
    ConfigError,
    FeatureFlagConfig,
    check_stage_references,
    read_config_document,
)

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "featureflags.schema.json"


def load_schema(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load a configuration JSON Schema.

    Args:
        path: Schema file; defaults to the schema bundled with the package.

    Returns:
        Parsed schema document.
    """
    path = Path(path) if path is not None else SCHEMA_PATH
    with open(path, "r", encoding="utf-8") as f:
        schema = json.load(f)
    Draft7Validator.check_schema(schema)
    return schema


class ConfigValidator:
    """Validates configuration documents against a schema.

    The schema is passed in explicitly; use load_schema() to obtain the
    bundled one.

    Attributes:
        schema: Parsed JSON Schema document.
    """

    def __init__(self, schema: Mapping[str, Any]):
        self.schema = schema
        self._validator = Draft7Validator(schema)

    def iter_errors(self, document: Any) -> Iterator[str]:
        """Yield human-readable validation errors for a parsed document.

        Structural errors are reported first; the stage reference check only
        runs on a structurally valid document. A document that passes both is
        built once more, which catches values JSON Schema lets through, such
        as a NaN probability.
        """
        structural = sorted(self._validator.iter_errors(document), key=lambda e: [str(p) for p in e.path])
        for error in structural:
            error_path = ".".join(str(p) for p in error.path) if error.path else "root"
            yield f"Schema validation: {error_path}: {error.message}"

        if structural:
            return

        try:
            check_stage_references(document)
            FeatureFlagConfig.from_dict(document)
        except ConfigError as e:
            yield str(e)

    def validate(self, document: Any) -> None:
        """Validate a parsed document.

        Raises:
            ConfigError: With every error message if the document is invalid.
        """
        errors = list(self.iter_errors(document))
        if errors:
            raise ConfigError("; ".join(errors))

    def is_valid(self, document: Any) -> bool:
        """Check a parsed document, logging each error found."""
        errors: List[str] = list(self.iter_errors(document))
        for message in errors:
            logger.error(message)
        return not errors

    def build(self, document: Any) -> FeatureFlagConfig:
        """Validate a parsed document and build the configuration from it.

        Raises:
            ConfigError: If the document is invalid.
        """
        self.validate(document)
        return FeatureFlagConfig.from_dict(document)


def confirm_config(document: Any, schema: Optional[Mapping[str, Any]] = None) -> bool:
    """Return whether a parsed document is a valid configuration.

    Args:
        document: Parsed configuration document.
        schema: Schema to validate against; defaults to the bundled schema.
    """
    return ConfigValidator(schema if schema is not None else load_schema()).is_valid(document)


def load_config_from_file(
    path: Union[str, Path],
    schema: Optional[Mapping[str, Any]] = None,
) -> Optional[FeatureFlagConfig]:
    """Read, validate and build a configuration from a JSON or YAML file.

    Args:
        path: Configuration file (.json or .yaml/.yml).
        schema: Schema to validate against; defaults to the bundled schema.

    Returns:
        The configuration, or None if the file does not parse or is invalid.
        The reason is logged.
    """
    try:
        document = read_config_document(path)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read configuration {path}: {e}")
        return None

    validator = ConfigValidator(schema if schema is not None else load_schema())
    if not validator.is_valid(document):
        logger.error(f"Configuration {path} is invalid")
        return None

    try:
        config = FeatureFlagConfig.from_dict(document)
    except ConfigError as e:
        logger.error(f"Configuration {path} is invalid: {e}")
        return None

    logger.info(f"Loaded configuration {path}: {len(config.stages)} stages, {len(config.features)} features")
    return config
