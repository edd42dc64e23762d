"""
YAML → typed scheduler settings.

Loads default patterns, anchor defaults and timeline settings from
scheduler.yaml (bundled with the package) and optionally merges user
overrides from ~/.anchor-scheduler/scheduler.yaml.

Usage:
    from anchor_scheduler.core.engine.config_loader import load_scheduler_config
    cfg = load_scheduler_config()
    patterns = patterns_from_config(cfg)

If the bundled YAML cannot be parsed, all lookups return the Python
defaults from config.py (no crash).  If the user override file exists but
cannot be used, a warning is issued and the file is ignored.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Any

from ..catalog.loader import _deep_merge, _load_yaml_file
from ..config import (
    DEFAULT_FIRST_MEAL_TIME,
    DEFAULT_LAST_MEAL_TIME,
    DEFAULT_RECOVERY_SCORE,
    DEFAULT_SLEEP_ONSET_MINUTES,
    DEFAULT_TYPICAL_BED_TIME,
    DEFAULT_TYPICAL_WAKE_TIME,
)
from ..models import DEFAULT_PATTERNS, UserPatterns


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled scheduler.yaml, or None if not found."""
    candidate = Path(__file__).parent.parent.parent / "scheduler.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.anchor-scheduler/scheduler.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".anchor-scheduler" / "scheduler.yaml"
    return p if p.exists() else None


def load_scheduler_config() -> dict[str, Any]:
    """
    Load and merge scheduler configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/anchor_scheduler/scheduler.yaml
    2. User override at ~/.anchor-scheduler/scheduler.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)
        else:
            warnings.warn(
                f"anchor-scheduler: ignoring empty or unreadable config {user}",
                stacklevel=2,
            )

    return config


def patterns_from_config(config: dict[str, Any] | None = None) -> UserPatterns:
    """
    Build UserPatterns from the ``patterns`` section.

    Falls back to DEFAULT_PATTERNS when the section is missing or invalid.
    """
    if config is None:
        config = load_scheduler_config()
    section = config.get("patterns")
    if not isinstance(section, dict):
        return DEFAULT_PATTERNS

    known = {
        "avg_bedtime",
        "avg_wake_time",
        "avg_sleep_duration",
        "chronotype",
        "wake_buffer_hours",
        "target_sleep_hours",
    }
    try:
        return UserPatterns(**{k: v for k, v in section.items() if k in known})
    except (TypeError, ValueError) as exc:
        warnings.warn(f"anchor-scheduler: invalid patterns config ({exc}); using defaults", stacklevel=2)
        return DEFAULT_PATTERNS


def anchor_defaults_from_config(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Return anchor fallbacks as keyword arguments for default_anchors().

    Keys: typical_wake_time, typical_bed_time, first_meal_time,
    last_meal_time, sleep_onset_minutes.  Missing keys take the
    config.py defaults.
    """
    if config is None:
        config = load_scheduler_config()
    section = config.get("anchors")
    if not isinstance(section, dict):
        section = {}

    return {
        "typical_wake_time": str(section.get("typical_wake_time", DEFAULT_TYPICAL_WAKE_TIME)),
        "typical_bed_time": str(section.get("typical_bed_time", DEFAULT_TYPICAL_BED_TIME)),
        "first_meal_time": str(section.get("first_meal_time", DEFAULT_FIRST_MEAL_TIME)),
        "last_meal_time": str(section.get("last_meal_time", DEFAULT_LAST_MEAL_TIME)),
        "sleep_onset_minutes": float(
            section.get("sleep_onset_minutes", DEFAULT_SLEEP_ONSET_MINUTES)
        ),
    }


def default_recovery_score(config: dict[str, Any] | None = None) -> float:
    """Recovery score used when the caller supplies none."""
    if config is None:
        config = load_scheduler_config()
    section = config.get("timeline")
    if not isinstance(section, dict):
        return float(DEFAULT_RECOVERY_SCORE)
    try:
        return float(section.get("default_recovery_score", DEFAULT_RECOVERY_SCORE))
    except (TypeError, ValueError):
        return float(DEFAULT_RECOVERY_SCORE)
