from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from .build_config import BuildConfig
from .errors import MalformedDocument, MissingDistributionOverlay
from .lib.assets import iter_files
from .lib.env import PATHS

logger = logging.getLogger(__name__)

OFFICIAL = "official"
UNOFFICIAL = "unofficial"


@dataclass(frozen=True)
class BrandingSet:
    name: str
    # file path relative to the branding dir -> source file
    files: Dict[str, Path] = field(default_factory=dict)
    # app name -> {archive path -> source file}
    customizations: Dict[str, Dict[str, Path]] = field(default_factory=dict)

    def archive_entries(self) -> Dict[str, bytes]:
        return {f"{PATHS.branding_in_archive}/{rel}": src.read_bytes() for rel, src in sorted(self.files.items())}

    def customize(self, app_name: str, entries: Mapping[str, bytes]) -> Dict[str, bytes]:
        """Apply distribution customizations for ``app_name`` to archive entries."""
        out = dict(entries)
        for path, src in sorted((self.customizations.get(app_name) or {}).items()):
            out[path] = _overlay_bytes(out.get(path), src)
        return out


def _overlay_bytes(current: Optional[bytes], src: Path) -> bytes:
    data = src.read_bytes()
    if current is None or src.suffix != ".json":
        return data
    try:
        base = json.loads(current.decode("utf-8"))
        override = json.loads(data.decode("utf-8"))
    except ValueError as e:
        raise MalformedDocument(str(src), f"cannot merge JSON customization: {e}") from e
    if not isinstance(base, dict) or not isinstance(override, dict):
        return data
    merged = dict(base)
    merged.update(override)
    return (json.dumps(merged, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _collect_customizations(apps_dir: Path) -> Dict[str, Dict[str, Path]]:
    out: Dict[str, Dict[str, Path]] = {}
    if not apps_dir.is_dir():
        return out
    for app_dir in sorted(p for p in apps_dir.iterdir() if p.is_dir()):
        files = dict(iter_files(app_dir))
        if files:
            out[app_dir.name] = files
    return out


def select(config: BuildConfig) -> BrandingSet:
    name = OFFICIAL if config.official else UNOFFICIAL
    base_dir = config.gaia_dir / PATHS.branding_src / name
    if not base_dir.is_dir():
        raise MalformedDocument(str(base_dir), "branding directory not found")
    files = dict(iter_files(base_dir))
    customizations: Dict[str, Dict[str, Path]] = {}

    dist = config.distribution_dir
    if dist is not None:
        if not dist.is_dir():
            raise MissingDistributionOverlay(str(dist))
        dist_branding = dist / "branding"
        if dist_branding.is_dir():
            overrides = dict(iter_files(dist_branding))
            files.update(overrides)
            logger.info("Distribution overrides %d branding file(s)", len(overrides))
        customizations = _collect_customizations(dist / "apps")
        name = f"{name}+{dist.name}"

    logger.info("Selected branding %s (%d files)", name, len(files))
    return BrandingSet(name=name, files=files, customizations=customizations)
