"""Merge the common settings document with flag-gated overlays."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .build_config import BuildConfig
from .errors import MalformedDocument, MissingDistributionOverlay
from .lib.env import PATHS
from .lib.manifests import load_settings_table, read_json_object

logger = logging.getLogger(__name__)

DISTRIBUTION_SETTINGS = "settings.json"

# Keys that non-user variants rewrite. Only test oracles comparing against the
# common document use this; the merger always writes them.
VARIANT_MANAGED_SETTINGS = frozenset(
    {
        "apz.force-enable",
        "debug.console.enabled",
        "developer.menu.enabled",
    }
)


@dataclass(frozen=True)
class SettingsDocument:
    name: str
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MergedSettings:
    values: Dict[str, Any]
    # key -> name of the document that supplied the final value
    sources: Dict[str, str]


def merge(common: SettingsDocument, overlays: Sequence[SettingsDocument]) -> MergedSettings:
    values: Dict[str, Any] = dict(common.values)
    sources: Dict[str, str] = {key: common.name for key in common.values}
    for overlay in overlays:
        for key, value in overlay.values.items():
            values[key] = value
            sources[key] = overlay.name
        logger.debug("Applied settings overlay %s (%d keys)", overlay.name, len(overlay.values))
    return MergedSettings(values=values, sources=sources)


def load_common_settings(config: BuildConfig) -> SettingsDocument:
    for rel in PATHS.common_settings:
        path = config.gaia_dir / rel
        if path.exists():
            return SettingsDocument(name="common", values=read_json_object(path))
    raise MalformedDocument(
        str(config.gaia_dir / PATHS.common_settings[0]), "common settings document not found"
    )


def _table(name: str) -> Callable[[BuildConfig], SettingsDocument]:
    def build(config: BuildConfig) -> SettingsDocument:
        return SettingsDocument(name=name, values=load_settings_table(name))

    return build


def _urls(config: BuildConfig) -> SettingsDocument:
    return SettingsDocument(
        name="urls",
        values={
            "homescreen.manifestURL": f"{config.app_url('homescreen')}/manifest.webapp",
            "rocketbar.searchAppURL": f"{config.app_url('search')}/index.html",
            "language.current": config.default_locale,
        },
    )


def _distribution(config: BuildConfig) -> Optional[SettingsDocument]:
    dist = config.distribution_dir
    if dist is None:
        return None
    if not dist.is_dir():
        raise MissingDistributionOverlay(str(dist))
    path = dist / DISTRIBUTION_SETTINGS
    if not path.exists():
        return None
    return SettingsDocument(name="distribution", values=read_json_object(path))


SETTINGS_OVERLAYS: List[tuple] = [
    ("engineering", lambda c: c.variant != "user", _table("engineering")),
    ("urls", lambda c: True, _urls),
    ("production", lambda c: c.production, _table("production")),
    ("simulator", lambda c: c.simulator, _table("simulator")),
    ("device_debug", lambda c: c.device_debug, _table("device_debug")),
    ("distribution", lambda c: c.distribution_dir is not None, _distribution),
]


def select_overlays(config: BuildConfig) -> List[SettingsDocument]:
    overlays: List[SettingsDocument] = []
    for name, predicate, build in SETTINGS_OVERLAYS:
        if not predicate(config):
            continue
        doc = build(config)
        if doc is not None:
            overlays.append(doc)
    logger.info("Settings overlays: %s", ", ".join(d.name for d in overlays) or "(none)")
    return overlays


def merge_settings(config: BuildConfig) -> MergedSettings:
    return merge(load_common_settings(config), select_overlays(config))

