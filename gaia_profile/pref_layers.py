"""Flag-gated preference overlays.

Every overlay is a ``(name, source, predicate, builder)`` rule. Rules are
evaluated in registry order; the resulting layers are then resolved with
base < variant < distribution precedence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .build_config import BuildConfig
from .errors import MalformedDocument, MissingDistributionOverlay
from .lib.manifests import load_pref_table
from .preferences import PreferenceLayer, ResolvedPreferences, resolve
from .prefs_script import parse_prefs_script

logger = logging.getLogger(__name__)

DISTRIBUTION_PREFS = "custom-prefs.js"


@dataclass(frozen=True)
class OverlayRule:
    name: str
    source: str
    predicate: Callable[[BuildConfig], bool]
    build: Callable[[BuildConfig], Optional[PreferenceLayer]]


def _table_layer(name: str, source: str) -> Callable[[BuildConfig], PreferenceLayer]:
    def build(config: BuildConfig) -> PreferenceLayer:
        table = load_pref_table(name)
        return PreferenceLayer.from_tables(
            name,
            source,
            user=table.get("user"),
            locked=table.get("locked"),
            remove=table.get("remove") or (),
        )

    return build


def system_urls(config: BuildConfig) -> tuple[str, str]:
    """Return ``(manifest URL, homescreen URL)`` of the system app."""
    system = config.app_url("system")
    homescreen = system if config.debug else f"{system}/index.html"
    return f"{system}/manifest.webapp", homescreen


def _urls_layer(config: BuildConfig) -> PreferenceLayer:
    manifest_url, homescreen_url = system_urls(config)
    return PreferenceLayer.from_tables(
        "urls",
        "base",
        user={
            "browser.manifestURL": manifest_url,
            "browser.homescreenURL": homescreen_url,
        },
    )


def _desktop_layer(config: BuildConfig) -> PreferenceLayer:
    table = load_pref_table("desktop")
    user = dict(table.get("user") or {})
    user["browser.startup.homepage"] = system_urls(config)[1]
    return PreferenceLayer.from_tables("desktop", "variant", user=user)


def _debug_layer(config: BuildConfig) -> PreferenceLayer:
    table = load_pref_table("debug")
    user = dict(table.get("user") or {})
    user.update(
        {
            "extensions.gaia.dir": str(config.gaia_dir),
            "extensions.gaia.domain": config.domain,
            "extensions.gaia.port": config.port,
            "extensions.gaia.official": config.official,
            "extensions.gaia.locales_file": config.locales_file,
            "extensions.gaia.locale_basedir": config.locale_basedir,
            "extensions.gaia.device_pixel_suffix": config.device_pixel_suffix,
        }
    )
    return PreferenceLayer.from_tables("debug", "variant", user=user)


def distribution_prefs_path(config: BuildConfig) -> Optional[Path]:
    dist = config.distribution_dir
    if dist is None:
        return None
    if not dist.is_dir():
        raise MissingDistributionOverlay(str(dist))
    return dist / DISTRIBUTION_PREFS


def _distribution_layer(config: BuildConfig) -> Optional[PreferenceLayer]:
    path = distribution_prefs_path(config)
    if path is None or not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MalformedDocument(str(path), str(e)) from e
    user, locked = parse_prefs_script(text, source=str(path))
    return PreferenceLayer.from_tables("distribution", "distribution", user=user, locked=locked)


PREFERENCE_OVERLAYS: List[OverlayRule] = [
    OverlayRule("common", "base", lambda c: True, _table_layer("common", "base")),
    OverlayRule("urls", "base", lambda c: True, _urls_layer),
    OverlayRule("engineering", "variant", lambda c: c.variant != "user", _table_layer("engineering", "variant")),
    OverlayRule("desktop", "variant", lambda c: c.desktop, _desktop_layer),
    OverlayRule("device_debug", "variant", lambda c: c.device_debug, _table_layer("device_debug", "variant")),
    OverlayRule("debug", "variant", lambda c: c.debug, _debug_layer),
    OverlayRule("production", "variant", lambda c: c.production, _table_layer("production", "variant")),
    OverlayRule("distribution", "distribution", lambda c: c.distribution_dir is not None, _distribution_layer),
]


def select_layers(config: BuildConfig, rules: Optional[List[OverlayRule]] = None) -> List[PreferenceLayer]:
    layers: List[PreferenceLayer] = []
    for rule in PREFERENCE_OVERLAYS if rules is None else rules:
        if not rule.predicate(config):
            continue
        layer = rule.build(config)
        if layer is None:
            logger.info("Preference overlay %s active but empty", rule.name)
            continue
        layers.append(layer)
    logger.info("Preference layers: %s", ", ".join(layer.name for layer in layers))
    return layers


def resolve_preferences(config: BuildConfig) -> ResolvedPreferences:
    return resolve(select_layers(config), config)
