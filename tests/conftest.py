"""Pytest fixtures for rotalabs-featureflags tests.

This module provides reusable configurations and random sources for testing
the feature flag evaluator.
"""

import json
import pytest
from typing import Any, Dict, Iterable

from rotalabs_featureflags.core.config import FeatureFlagConfig


@pytest.fixture
def reference_document() -> Dict[str, Any]:
    """Create a configuration document with three features.

    Features:
        - filetracker: production repositories and storage repositories
        - newestfeature: production repositories only
        - testfeature: nothing outside canary repositories
    """
    return {
        "stages": {
            "all-production": [
                {"allowlist": ["^production/"]},
                {"denylist": ["important"]},
            ],
            "all-storage-important": [
                {"allowlist": ["storage.*"]},
                {"denylist": ["storage-important/master", "storage-important2/master"]},
            ],
            "canary": [
                {"allowlist": ["^canary/"]},
            ],
            "none": [
                {"denylist": [".*"]},
            ],
        },
        "features": {
            "filetracker": {
                "stages": ["all-production", "all-storage-important"],
                "description": "Track file access in builds",
                "environmentVariables": [
                    {"FILETRACKER_ENABLED": "1"},
                    {"FILETRACKER_MODE": "strict"},
                ],
            },
            "newestfeature": {
                "stages": ["all-production"],
            },
            "testfeature": {
                "stages": ["none", "canary"],
                "environmentVariables": [{"TESTFEATURE": "on"}],
            },
        },
    }


@pytest.fixture
def reference_config(reference_document) -> FeatureFlagConfig:
    """Build the reference configuration."""
    return FeatureFlagConfig.from_dict(reference_document)


@pytest.fixture
def reference_file(tmp_path, reference_document):
    """Write the reference configuration to a JSON file."""
    path = tmp_path / "features.json"
    path.write_text(json.dumps(reference_document), encoding="utf-8")
    return path


@pytest.fixture
def scripted_random():
    """Factory fixture for random sources returning scripted draws.

    The returned source records how often it was called in ``calls``.

    Example:
        source = scripted_random([0.2, 0.9])
        source()  # 0.2
    """
    def _create_source(draws: Iterable[float]):
        values = iter(draws)

        def source() -> float:
            source.calls += 1
            return next(values)

        source.calls = 0
        return source

    return _create_source
