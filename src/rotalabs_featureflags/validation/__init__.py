"""
Validation module for rotalabs-featureflags.

This module checks configuration documents against the JSON Schema and the
stage reference rules before they are built into a configuration.
"""

from rotalabs_featureflags.validation.validator import (
    ConfigValidator,
    confirm_config,
    load_config_from_file,
    load_schema,
)

__all__ = ["ConfigValidator", "confirm_config", "load_config_from_file", "load_schema"]
