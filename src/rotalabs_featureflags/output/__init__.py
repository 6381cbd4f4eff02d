"""Output module for rotalabs-featureflags."""

from rotalabs_featureflags.output.writer import (
    render_features_env,
    render_features_ini,
    render_features_json,
    write_evaluated_features_files,
)

__all__ = [
    "render_features_env",
    "render_features_ini",
    "render_features_json",
    "write_evaluated_features_files",
]
