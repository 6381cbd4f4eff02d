"""Output files for evaluated features.

A batch evaluation result is written as three files in one folder:

- ``features.json``: JSON object of feature name to enabled state
- ``features.ini``: one ``name<TAB>value`` line per feature
- ``features.env.config``: environment variables of enabled features, each
  group introduced by a ``# Feature [name]`` header line
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Union

from rotalabs_featureflags.core.config import FeatureFlagConfig

logger = logging.getLogger(__name__)

FEATURES_JSON = "features.json"
FEATURES_INI = "features.ini"
FEATURES_ENV = "features.env.config"


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def render_features_json(evaluated: Mapping[str, bool], indent: int = 2) -> str:
    return json.dumps(dict(evaluated), indent=indent) + "\n"


def render_features_ini(evaluated: Mapping[str, bool]) -> str:
    return "".join(f"{name}\t{_format_bool(enabled)}\n" for name, enabled in evaluated.items())


def render_features_env(config: FeatureFlagConfig, evaluated: Mapping[str, bool]) -> str:
    """Render environment variable declarations for enabled features.

    Features that are disabled, not declared in ``config``, or declare no
    environment variables contribute nothing.
    """
    lines: List[str] = []
    for name, enabled in evaluated.items():
        if not enabled:
            continue
        feature = config.features.get(name)
        if feature is None or not feature.environment_variables:
            continue
        lines.append(f"# Feature [{name}]")
        lines.extend(f"{var_name}\t{var_value}" for var_name, var_value in feature.environment_variables)
    return "".join(f"{line}\n" for line in lines)


def write_evaluated_features_files(
    config: FeatureFlagConfig,
    evaluated: Mapping[str, bool],
    output_folder: Union[str, Path],
) -> Dict[str, Path]:
    """Write the evaluated features files into a folder.

    Args:
        config: Configuration the features were evaluated against.
        evaluated: Result of a batch evaluation.
        output_folder: Destination folder, created if missing.

    Returns:
        Written file paths keyed by file name.
    """
    folder = Path(output_folder)
    folder.mkdir(parents=True, exist_ok=True)

    contents = {
        FEATURES_JSON: render_features_json(evaluated),
        FEATURES_INI: render_features_ini(evaluated),
        FEATURES_ENV: render_features_env(config, evaluated),
    }

    written: Dict[str, Path] = {}
    for file_name, text in contents.items():
        path = folder / file_name
        path.write_text(text, encoding="utf-8")
        written[file_name] = path
        logger.debug(f"Wrote {path}")

    logger.info(f"Wrote evaluated features files to {folder}")
    return written
