from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from ..errors import MalformedDocument


def _data_root() -> Path:
    # gaia_profile/lib/manifests.py -> gaia_profile/data
    return Path(__file__).resolve().parents[1] / "data"


def load_yaml_rel(rel_path: str) -> Dict[str, Any]:
    """Load a YAML table shipped under gaia_profile/data/."""
    try:
        import yaml  # type: ignore
    except ImportError as e:  # pragma: no cover
        raise RuntimeError("PyYAML required to load layer tables") from e

    p = _data_root() / rel_path.lstrip("/")
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise MalformedDocument(str(p), "layer table must be a mapping/dict")
    return data


def load_pref_table(name: str) -> Dict[str, Any]:
    return load_yaml_rel(f"prefs/{name}.yaml")


def load_settings_table(name: str) -> Dict[str, Any]:
    return load_yaml_rel(f"settings/{name}.yaml")


def read_json_object(path: Path) -> Dict[str, Any]:
    """Read a JSON document that must hold an object."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as e:
        raise MalformedDocument(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise MalformedDocument(str(path), "expected a JSON object")
    return data
