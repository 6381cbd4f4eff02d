"""Configuration classes for the feature flag evaluator.

This module defines the in-memory model of a feature flag configuration:
the three condition kinds a stage is built from, the feature descriptor, and
the top-level configuration holding both. It also carries the referential
integrity check that JSON Schema cannot express.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration document is malformed or inconsistent."""


CONDITION_KEYS = ("allowlist", "denylist", "probability")


@dataclass(frozen=True)
class AllowCondition:
    """Satisfied when the predicate matches at least one pattern.

    Attributes:
        patterns: Regular expressions, searched unanchored.
    """

    patterns: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"allowlist": list(self.patterns)}


@dataclass(frozen=True)
class DenyCondition:
    """Satisfied when the predicate matches none of the patterns.

    Attributes:
        patterns: Regular expressions, searched unanchored.
    """

    patterns: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"denylist": list(self.patterns)}


@dataclass(frozen=True)
class ProbabilityCondition:
    """Satisfied when a uniform draw in [0, 1) is strictly below ``value``.

    Attributes:
        value: Fraction of evaluations admitted, in [0, 1].
    """

    value: float

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise ConfigError(f"probability must be a number, got {self.value!r}")
        if not 0.0 <= self.value <= 1.0:
            raise ConfigError(f"probability must be between 0 and 1, got {self.value}")

    def to_dict(self) -> Dict[str, Any]:
        return {"probability": self.value}


Condition = Union[AllowCondition, DenyCondition, ProbabilityCondition]


def _pattern_tuple(key: str, raw: Any) -> Tuple[str, ...]:
    if not isinstance(raw, list) or not all(isinstance(p, str) for p in raw):
        raise ConfigError(f"{key} must be a list of strings")
    return tuple(raw)


def condition_from_dict(data: Mapping[str, Any]) -> Condition:
    """Create a condition from its document form.

    Exactly one of ``allowlist``, ``denylist`` or ``probability`` must be
    present.

    Raises:
        ConfigError: If the document names zero or several condition kinds.
    """
    if not isinstance(data, Mapping):
        raise ConfigError(f"condition must be an object, got {type(data).__name__}")

    present = [key for key in CONDITION_KEYS if key in data]
    if len(present) != 1:
        raise ConfigError(
            f"condition must have exactly one of {', '.join(CONDITION_KEYS)}; got {sorted(data)}"
        )

    extra = set(data) - set(CONDITION_KEYS)
    if extra:
        raise ConfigError(f"condition has unsupported keys: {sorted(extra)}")

    key = present[0]
    if key == "allowlist":
        return AllowCondition(patterns=_pattern_tuple(key, data[key]))
    if key == "denylist":
        return DenyCondition(patterns=_pattern_tuple(key, data[key]))
    return ProbabilityCondition(value=data[key])


@dataclass(frozen=True)
class FeatureConfig:
    """A named capability mapped to one or more rollout stages.

    Attributes:
        name: Feature name.
        stages: Stage names, in declaration order.
        description: Optional human-readable description.
        environment_variables: Ordered ``(name, value)`` pairs emitted for the
            feature when it is enabled.
    """

    name: str
    stages: Tuple[str, ...] = field(default_factory=tuple)
    description: Optional[str] = None
    environment_variables: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert feature to its document form."""
        result: Dict[str, Any] = {"stages": list(self.stages)}
        if self.description is not None:
            result["description"] = self.description
        if self.environment_variables:
            result["environmentVariables"] = [{name: value} for name, value in self.environment_variables]
        return result

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "FeatureConfig":
        """Create feature from its document form."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"feature {name} must be an object")

        stages = data.get("stages", [])
        if not isinstance(stages, list) or not all(isinstance(s, str) for s in stages):
            raise ConfigError(f"feature {name}: stages must be a list of strings")

        env_vars: List[Tuple[str, str]] = []
        for item in data.get("environmentVariables") or []:
            if not isinstance(item, Mapping) or len(item) != 1:
                raise ConfigError(f"feature {name}: environment variable entries must have exactly one key")
            ((var_name, var_value),) = item.items()
            env_vars.append((str(var_name), str(var_value)))

        return cls(
            name=name,
            stages=tuple(stages),
            description=data.get("description"),
            environment_variables=tuple(env_vars),
        )


@dataclass(frozen=True)
class FeatureFlagConfig:
    """Complete feature flag configuration.

    Instances are read-only once built: stage condition lists are tuples and
    both mappings are exposed as read-only views.

    Attributes:
        stages: Condition lists keyed by stage name.
        features: Feature descriptors keyed by feature name.
    """

    stages: Mapping[str, Tuple[Condition, ...]]
    features: Mapping[str, FeatureConfig] = field(default_factory=dict)

    def __post_init__(self):
        for name, conditions in self.stages.items():
            if not conditions:
                raise ConfigError(f"stage {name} must have at least one condition")
        object.__setattr__(
            self, "stages", MappingProxyType({name: tuple(c) for name, c in self.stages.items()})
        )
        object.__setattr__(self, "features", MappingProxyType(dict(self.features)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to its document form."""
        result: Dict[str, Any] = {
            "stages": {name: [c.to_dict() for c in conditions] for name, conditions in self.stages.items()},
        }
        if self.features:
            result["features"] = {name: feature.to_dict() for name, feature in self.features.items()}
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeatureFlagConfig":
        """Create configuration from a parsed document.

        The document is expected to have passed structural validation; the
        checks here only guard the shape this class relies on.
        """
        if not isinstance(data, Mapping):
            raise ConfigError("top-level config must be an object")

        raw_stages = data.get("stages")
        if not isinstance(raw_stages, Mapping):
            raise ConfigError("stages must be an object")

        stages = {}
        for name, raw_conditions in raw_stages.items():
            if not isinstance(raw_conditions, list):
                raise ConfigError(f"stage {name} must be a list of conditions")
            stages[name] = tuple(condition_from_dict(c) for c in raw_conditions)

        raw_features = data.get("features") or {}
        if not isinstance(raw_features, Mapping):
            raise ConfigError("features must be an object")
        features = {name: FeatureConfig.from_dict(name, feature) for name, feature in raw_features.items()}

        return cls(stages=stages, features=features)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "FeatureFlagConfig":
        """Load configuration from a JSON or YAML file without schema validation.

        Args:
            path: Path to configuration file (.json or .yaml/.yml).

        Returns:
            Loaded configuration.

        Raises:
            ValueError: If file format is unsupported.
        """
        return cls.from_dict(read_config_document(path))

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def read_config_document(path: Union[str, Path]) -> Any:
    """Read a configuration document from a JSON or YAML file.

    Args:
        path: Path to configuration file (.json or .yaml/.yml).

    Returns:
        The parsed document.

    Raises:
        ValueError: If file format is unsupported or the content does not parse.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    with open(path, "r", encoding="utf-8") as f:
        if suffix == ".json":
            return json.load(f)
        if suffix in (".yaml", ".yml"):
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        raise ValueError(f"Unsupported file format: {suffix}. Use .json, .yaml, or .yml")


def _feature_stage_refs(config: Union[FeatureFlagConfig, Mapping[str, Any]]) -> Iterable[Tuple[str, str]]:
    if isinstance(config, FeatureFlagConfig):
        for name, feature in config.features.items():
            for stage in feature.stages:
                yield name, stage
        return

    for name, feature in (config.get("features") or {}).items():
        for stage in feature.get("stages") or []:
            yield name, stage


def check_stage_references(config: Union[FeatureFlagConfig, Mapping[str, Any]]) -> None:
    """Verify that every stage referenced by a feature is declared.

    Accepts either a built configuration or the raw parsed document, so it
    can run as the second pass after structural validation.

    Raises:
        ConfigError: On the first missing stage reference.
    """
    if isinstance(config, FeatureFlagConfig):
        declared = config.stages
    else:
        declared = config.get("stages") or {}

    for feature_name, stage_name in _feature_stage_refs(config):
        if stage_name not in declared:
            raise ConfigError(f"Feature {feature_name} references undefined stage: {stage_name}")

    logger.debug("Stage references verified", extra={"stage_count": len(declared)})
