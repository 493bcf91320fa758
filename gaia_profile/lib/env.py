from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    """Profile-relative and source-relative locations."""

    prefs_script: str = "user.js"
    settings: str = "settings.json"
    webapps_dir: str = "webapps"
    webapps_index: str = "webapps/webapps.json"
    archive_name: str = "application.zip"
    manifest_name: str = "manifest.webapp"
    installed_extensions: str = "installed-extensions.json"
    extensions_dir: str = "extensions"

    branding_src: str = "shared/resources/branding"
    branding_in_archive: str = "shared/resources/branding"
    locales_in_archive: str = "locales-obj"
    extensions_src: str = "tools/extensions"
    common_settings: tuple = ("build/config/common-settings.json", "build/common-settings.json")


PATHS = Paths()
