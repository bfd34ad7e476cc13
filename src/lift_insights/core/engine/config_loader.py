"""
YAML → typed config loader.

Loads analysis options from defaults.yaml (bundled with the package) and
optionally merges user overrides from ~/.lift-insights/config.yaml.

Usage:
    from lift_insights.core.engine.config_loader import load_analysis_options
    options = load_analysis_options()

If the bundled YAML cannot be read, the Python defaults from config.py apply
(no crash).  If the user override file exists but has parse errors, a warning
is issued and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from ..config import AnalysisOptions

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; raise yaml.YAMLError / OSError on failure."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled defaults.yaml, or None if not found."""
    candidate = Path(str(importlib.resources.files("lift_insights").joinpath("defaults.yaml")))
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.lift-insights/config.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".lift-insights" / "config.yaml"
    return p if p.exists() else None


def load_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/lift_insights/defaults.yaml
    2. User override (``user_path``, else ~/.lift-insights/config.yaml)

    Args:
        user_path: Explicit override file, mainly for tests

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        try:
            config = _deep_merge(config, _load_yaml_file(bundled))
        except (OSError, yaml.YAMLError) as e:
            warnings.warn(f"Bundled defaults could not be read ({e}); using built-in values")

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        try:
            config = _deep_merge(config, _load_yaml_file(user))
        except (OSError, yaml.YAMLError) as e:
            warnings.warn(f"Ignoring config override {user}: {e}")

    return config


def load_analysis_options(user_path: Path | None = None) -> AnalysisOptions:
    """
    Build AnalysisOptions from the ``analysis:`` config section.

    Unknown keys are ignored with a warning.

    Raises:
        ValueError: If a configured value is out of range
    """
    section = load_config(user_path).get("analysis") or {}
    known = {f.name for f in fields(AnalysisOptions)}

    unknown = sorted(set(section) - known)
    if unknown:
        warnings.warn(f"Ignoring unknown analysis option(s): {', '.join(unknown)}")

    return AnalysisOptions(**{k: v for k, v in section.items() if k in known})
