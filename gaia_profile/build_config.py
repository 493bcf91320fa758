from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationConflict, MalformedDocument, UnknownVariant

VARIANTS = ("user", "userdebug", "eng")

DEFAULT_LOG_PATH = "logs/gaia-profile.log"
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Environment variables the build reads verbatim.
FLAG_NAMES = (
    "PRODUCTION",
    "DEBUG",
    "SIMULATOR",
    "DESKTOP",
    "DEVICE_DEBUG",
    "MOZILLA_OFFICIAL",
    "GAIA_DISTRIBUTION_DIR",
    "LOCALES_FILE",
    "LOCALE_BASEDIR",
    "TARGET_BUILD_VARIANT",
    "GAIA_DIR",
    "GAIA_DOMAIN",
    "GAIA_PORT",
    "GAIA_APP_SRCDIRS",
    "GAIA_DEFAULT_LOCALE",
    "GAIA_DEV_PIXELS_PER_PX",
    "PROFILE_FOLDER",
    "BUILD_JOBS",
    "SOURCE_DATE_EPOCH",
    "BUILD_LOG",
    "BUILD_LOG_LEVEL",
)

_TRUE = {"1", "true", "yes", "on"}


def _flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in _TRUE


@dataclass(frozen=True)
class BuildConfig:
    raw: Mapping[str, str]

    def get(self, name: str, default: str = "") -> str:
        value = self.raw.get(name)
        if value is None or str(value).strip() == "":
            return default
        return str(value).strip()

    @property
    def production(self) -> bool:
        return _flag(self.raw.get("PRODUCTION"))

    @property
    def debug(self) -> bool:
        return _flag(self.raw.get("DEBUG"))

    @property
    def simulator(self) -> bool:
        return _flag(self.raw.get("SIMULATOR"))

    @property
    def desktop(self) -> bool:
        if self.get("DESKTOP"):
            return _flag(self.raw.get("DESKTOP"))
        return self.debug or self.simulator

    @property
    def device_debug(self) -> bool:
        if self.get("DEVICE_DEBUG"):
            return _flag(self.raw.get("DEVICE_DEBUG"))
        return self.simulator

    @property
    def official(self) -> bool:
        return _flag(self.raw.get("MOZILLA_OFFICIAL"))

    @property
    def variant(self) -> str:
        return self.get("TARGET_BUILD_VARIANT", "eng")

    @property
    def gaia_dir(self) -> Path:
        return Path(self.get("GAIA_DIR", os.getcwd())).resolve()

    @property
    def distribution_dir(self) -> Optional[Path]:
        value = self.get("GAIA_DISTRIBUTION_DIR")
        if not value:
            return None
        return self.gaia_dir / value

    @property
    def locales_file(self) -> str:
        return self.get("LOCALES_FILE", "shared/resources/languages.json")

    @property
    def locales_path(self) -> Path:
        return self.gaia_dir / self.locales_file

    @property
    def locale_basedir(self) -> str:
        return self.get("LOCALE_BASEDIR")

    @property
    def locale_root(self) -> Optional[Path]:
        if not self.locale_basedir:
            return None
        return self.gaia_dir / self.locale_basedir

    @property
    def default_locale(self) -> str:
        return self.get("GAIA_DEFAULT_LOCALE", "en-US")

    @property
    def domain(self) -> str:
        return self.get("GAIA_DOMAIN", "gaiamobile.org")

    @property
    def port(self) -> int:
        return int(self.get("GAIA_PORT", "8080"))

    @property
    def app_srcdirs(self) -> List[str]:
        return self.get("GAIA_APP_SRCDIRS", "apps external-apps").split()

    @property
    def pixels_per_px(self) -> str:
        return self.get("GAIA_DEV_PIXELS_PER_PX", "1")

    @property
    def device_pixel_suffix(self) -> str:
        ratio = self.pixels_per_px
        return "" if ratio in {"1", "1.0"} else f"@{ratio}x"

    @property
    def profile_folder(self) -> str:
        default = "profile-debug" if (self.debug or self.simulator) else "profile"
        return self.get("PROFILE_FOLDER", default)

    @property
    def jobs(self) -> int:
        value = self.get("BUILD_JOBS")
        if value:
            return max(1, int(value))
        return min(8, os.cpu_count() or 1)

    @property
    def source_date_epoch(self) -> int:
        return int(self.get("SOURCE_DATE_EPOCH", "0"))

    @property
    def log_path(self) -> str:
        return self.get("BUILD_LOG", DEFAULT_LOG_PATH)

    @property
    def log_level(self) -> int:
        name = self.get("BUILD_LOG_LEVEL", "info").lower()
        if name not in LOG_LEVELS:
            raise ConfigurationConflict("BUILD_LOG_LEVEL", f"unknown log level {name!r}")
        return LOG_LEVELS[name]

    @property
    def scheme(self) -> str:
        """Scheme of the system URLs baked into prefs and settings."""
        return "http://" if self.debug else "app://"

    @property
    def port_suffix(self) -> str:
        return f":{self.port}" if self.debug else ""

    def app_url(self, app: str) -> str:
        return f"{self.scheme}{app}.{self.domain}{self.port_suffix}"

    def validate(self) -> "BuildConfig":
        if self.variant not in VARIANTS:
            raise UnknownVariant(self.variant)
        self.log_level  # raises on an unknown level
        return self


def build_config_from_mapping(*layers: Optional[Mapping[str, Any]]) -> BuildConfig:
    """Overlay flag mappings left to right and freeze the result."""
    raw: Dict[str, str] = {}
    for layer in layers:
        for key, value in (layer or {}).items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "1" if value else "0"
            raw[str(key)] = str(value)
    return BuildConfig(raw=raw).validate()


def environ_flags(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = os.environ if environ is None else environ
    return {name: env[name] for name in FLAG_NAMES if name in env}


def load_build_config(
    path: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> BuildConfig:
    """Load flags from a YAML file, then the environment, then ``overrides``."""

    file_flags: Dict[str, Any] = {}
    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)

        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise MalformedDocument(path, "build config must be YAML")

        try:
            import yaml  # type: ignore
        except ImportError as e:
            raise RuntimeError("PyYAML is required to read build config files") from e

        try:
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise MalformedDocument(path, str(e)) from e
        if not isinstance(raw, dict):
            raise MalformedDocument(path, "build config must contain a mapping/object")
        file_flags = raw

    return build_config_from_mapping(file_flags, environ_flags(environ), overrides)
