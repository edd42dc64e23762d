"""
YAML → Protocol loader.

Loads protocol definitions from per-domain YAML files in the bundled
``src/anchor_scheduler/protocols/`` directory.  Each file (e.g.
longevity.yaml) carries a ``version``, a ``domain`` and a ``protocols``
list whose entries match the Protocol schema.

User overrides: place matching files in ``~/.anchor-scheduler/protocols/``.
Protocols in a user file are deep-merged over the bundled protocol with
the same id, so only changed keys need to be listed; unknown ids are
appended to that domain.  A user file with no bundled counterpart is
loaded as a new domain after the bundled ones.

Usage (internal, called by catalog.py):
    from .loader import load_protocols_from_yaml
    loaded = load_protocols_from_yaml()   # (version, protocols) or None
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path

import yaml

from ..config import CATALOG_DOMAIN_ORDER
from ..models import Protocol

_REQUIRED_PROTOCOL_FIELDS: frozenset[str] = frozenset(
    {
        "id",
        "name",
        "description",
        "relative_to",
        "offset_minutes",
        "window_minutes",
        "priority",
        "is_skippable",
        "duration_minutes",
    }
)


def protocol_from_dict(d: dict, domain: str | None = None) -> Protocol:
    """Convert a raw dict (from YAML) to a Protocol.

    ``domain`` fills in the domain for entries nested under a domain file.
    Raises ValueError if any required field is absent or invalid.
    """
    d = dict(d)
    if domain is not None:
        d.setdefault("domain", domain)
    missing = (_REQUIRED_PROTOCOL_FIELDS | {"domain"}) - set(d)
    if missing:
        raise ValueError(f"Protocol missing fields: {sorted(missing)}")

    raw_min_recovery = d.get("min_recovery_score")

    try:
        return Protocol(
            id=str(d["id"]),
            name=str(d["name"]),
            description=str(d["description"]),
            domain=str(d["domain"]),  # type: ignore[arg-type]
            relative_to=str(d["relative_to"]),  # type: ignore[arg-type]
            offset_minutes=int(d["offset_minutes"]),
            window_minutes=int(d["window_minutes"]),
            priority=str(d["priority"]),  # type: ignore[arg-type]
            is_skippable=bool(d["is_skippable"]),
            duration_minutes=int(d["duration_minutes"]),
            only_if_training=bool(d.get("only_if_training", False)),
            only_if_no_training=bool(d.get("only_if_no_training", False)),
            min_recovery_score=(
                float(raw_min_recovery) if raw_min_recovery is not None else None
            ),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid protocol {d.get('id')!r}: {exc}") from exc


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} on any read or parse error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _merge_protocol_lists(base: list, override: list) -> list:
    """Merge override protocol dicts into base by id, appending new ids."""
    merged = [dict(p) for p in base if isinstance(p, dict)]
    index = {p.get("id"): i for i, p in enumerate(merged)}
    for p in override:
        if not isinstance(p, dict):
            continue
        pid = p.get("id")
        if pid in index:
            merged[index[pid]] = _deep_merge(merged[index[pid]], p)
        else:
            index[pid] = len(merged)
            merged.append(dict(p))
    return merged


def get_bundled_protocols_dir() -> Path | None:
    """Return path to the bundled protocols/ data directory, or None if not found."""
    # loader.py lives at src/anchor_scheduler/core/catalog/loader.py
    # three levels up → src/anchor_scheduler/
    candidate = Path(__file__).parent.parent.parent / "protocols"
    return candidate if candidate.is_dir() else None


def get_user_protocols_dir() -> Path | None:
    """Return ~/.anchor-scheduler/protocols/ if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".anchor-scheduler" / "protocols"
    return p if p.is_dir() else None


def _ordered_stems(paths: dict[str, Path]) -> list[str]:
    known = [s for s in CATALOG_DOMAIN_ORDER if s in paths]
    extra = sorted(s for s in paths if s not in CATALOG_DOMAIN_ORDER)
    return known + extra


def load_protocols_from_dirs(
    bundled_dir: Path | None,
    user_dir: Path | None = None,
) -> tuple[str, list[Protocol]] | None:
    """Return (version, protocols) loaded from the given directories.

    Domain files are read in CATALOG_DOMAIN_ORDER, then any other files
    alphabetically; protocol order within a file is preserved.  Broken
    entries are skipped with a warning.  Returns None when nothing loads.
    """
    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: dict[str, Path] = {}
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only[p.stem] = p

    protocols: list[Protocol] = []
    seen_ids: set[str] = set()
    versions: list[str] = []

    def _collect(stem: str, raw: dict, source: str) -> None:
        domain = str(raw.get("domain", stem))
        if raw.get("version") is not None:
            versions.append(str(raw["version"]))
        for entry in raw.get("protocols") or []:
            try:
                protocol = protocol_from_dict(entry, domain=domain)
            except (ValueError, TypeError) as exc:
                warnings.warn(
                    f"anchor-scheduler: skipping {source} protocol in '{stem}': {exc}",
                    stacklevel=3,
                )
                continue
            if protocol.id in seen_ids:
                warnings.warn(
                    f"anchor-scheduler: duplicate protocol id '{protocol.id}' in '{stem}' ignored",
                    stacklevel=3,
                )
                continue
            seen_ids.add(protocol.id)
            protocols.append(protocol)

    for stem in _ordered_stems(stems):
        raw = _load_yaml_file(stems[stem])
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = _load_yaml_file(user_path)
                if user_raw:
                    user_protocols = user_raw.pop("protocols", None) or []
                    raw = _deep_merge(raw, user_raw)
                    raw["protocols"] = _merge_protocol_lists(
                        raw.get("protocols") or [], user_protocols
                    )
        _collect(stem, raw, "bundled")

    for stem in _ordered_stems(user_only):
        raw = _load_yaml_file(user_only[stem])
        if raw:
            _collect(stem, raw, "user")

    if not protocols:
        return None
    version = "+".join(sorted(set(versions))) if versions else "unversioned"
    return version, protocols


def load_protocols_from_yaml() -> tuple[str, list[Protocol]] | None:
    """Load the bundled catalog merged with the user's override directory."""
    return load_protocols_from_dirs(get_bundled_protocols_dir(), get_user_protocols_dir())
