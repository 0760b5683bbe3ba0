import os
from pathlib import Path
from typing import Optional

import yaml

from buildlens_core.models import CheckConfiguration

DEFAULT_CONFIG: dict = {
    "project": None,
    "check_pmd": False,
    "check_bug_patterns": False,
    "check_style": False,
    "check_coverage": False,
    "coverage_threshold": 85.0,
    "coverage_tolerance": 0.0,  # percentage points a coverage drop may reach before it counts
    "available_checks": None,  # None = every tool family is installed; otherwise a list such as ["pmd", "coverage"]
    "store": "sqlite",
    "store_path": ".buildlens.db",
}


def load_config(config_path: str = ".buildlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .buildlens.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


def build_check_configuration(config: dict) -> CheckConfiguration:
    """
    Turn a loaded config dict into the immutable CheckConfiguration used by one evaluation.

    Raises ValueError for a non-numeric threshold, a check flag that is not a
    boolean, or an unknown entry in ``available_checks``.
    """
    available = config.get("available_checks")
    try:
        threshold = float(config.get("coverage_threshold", 85.0))
        tolerance = float(config.get("coverage_tolerance", 0.0))
    except (TypeError, ValueError):
        raise ValueError("coverage_threshold and coverage_tolerance must be numbers.")
    if tolerance < 0:
        raise ValueError(f"coverage_tolerance must not be negative, got {tolerance}.")

    return CheckConfiguration(
        check_pmd=config.get("check_pmd"),
        check_bug_patterns=config.get("check_bug_patterns"),
        check_style=config.get("check_style"),
        check_coverage=config.get("check_coverage"),
        coverage_threshold=threshold,
        coverage_tolerance=tolerance,
        available=frozenset(available) if available is not None else None,
    )
