"""Webapp discovery, packaging and the webapps index."""

from __future__ import annotations

import json
import logging
import zipfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .branding import BrandingSet
from .build_config import BuildConfig
from .errors import InvalidApplication, MalformedDocument, PackagingIOError
from .lib.archive import read_entries, write_zip
from .lib.assets import iter_files
from .lib.env import PATHS
from .lib.manifests import read_json_object
from .locales import build_bundle, inject

logger = logging.getLogger(__name__)

# Origins on these hosts are served over plain http.
HTTP_HOSTS = ("mochi.test", "marketplace.allizom.org")

APP_STATUS = {"certified": 3, "privileged": 2}

EXTERNAL_METADATA = "metadata.json"
SKIP_DIRS = ("build", "test")
BRANDING_REF = "shared/resources/branding/"


def resolve_scheme(origin: str) -> str:
    return "http" if any(host in origin for host in HTTP_HOSTS) else "app"


def canonical_origin(origin: str) -> str:
    """Rewrite ``origin`` to ``<scheme>://<host>`` with the resolved scheme."""
    host = urlparse(origin).netloc or origin.split("://", 1)[-1].strip("/")
    return f"{resolve_scheme(origin)}://{host}"


@dataclass(frozen=True)
class AppSource:
    name: str
    path: Path
    # webapps.json key; also the app's directory under webapps/
    app_id: str
    external: bool = False


@dataclass(frozen=True)
class Webapp:
    app_id: str
    name: str
    origin: str
    manifest: Dict[str, Any]
    manifest_url: str
    install_origin: str
    external: bool = False
    packaged: bool = True
    # in-archive path -> content; empty when the app is not packaged
    entries: Dict[str, bytes] = field(default_factory=dict)
    locales: Tuple[str, ...] = ()

    def index_entry(self, local_id: int, epoch: int) -> Dict[str, Any]:
        status = APP_STATUS.get(str(self.manifest.get("type") or ""), 1)
        return {
            "origin": self.origin,
            "installOrigin": self.install_origin,
            "manifestURL": self.manifest_url,
            "receipt": None,
            "installTime": epoch * 1000,
            "updateTime": epoch * 1000,
            "localId": local_id,
            "appStatus": status,
            "removable": self.external,
        }


def discover_apps(config: BuildConfig) -> List[AppSource]:
    """Find every app under ``GAIA_APP_SRCDIRS``.

    Both directory names and app ids must be unique: customizations are keyed
    by name, while the profile stores each app under its id.
    """
    apps: List[AppSource] = []
    names: Dict[str, Path] = {}
    ids: Dict[str, Path] = {}
    for srcdir in config.app_srcdirs:
        root = config.gaia_dir / srcdir
        if not root.is_dir():
            logger.info("App source dir %s missing; skipping", root)
            continue
        for app_dir in sorted(p for p in root.iterdir() if p.is_dir() and not p.name.startswith(".")):
            if app_dir.name in names:
                raise InvalidApplication(app_dir.name, f"defined in both {names[app_dir.name]} and {app_dir}")
            external = (app_dir / EXTERNAL_METADATA).exists()
            app_id = app_dir.name if external else f"{app_dir.name}.{config.domain}"
            if app_id in ids:
                raise InvalidApplication(app_id, f"app id claimed by both {ids[app_id]} and {app_dir}")
            names[app_dir.name] = app_dir
            ids[app_id] = app_dir
            apps.append(AppSource(app_dir.name, app_dir, app_id, external))
    return apps


def _load_manifest(app: str, path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise InvalidApplication(app, f"missing {path.name}")
    try:
        manifest = read_json_object(path)
    except MalformedDocument as e:
        raise InvalidApplication(app, f"malformed {path.name}: {e}") from e
    if not manifest.get("name"):
        raise InvalidApplication(app, f"{path.name} has no name")
    return manifest


def _manifest_from_archive(app: str, data: bytes) -> Dict[str, Any]:
    try:
        manifest = json.loads(data.decode("utf-8"))
    except ValueError as e:
        raise InvalidApplication(app, f"malformed {PATHS.manifest_name} in archive: {e}") from e
    if not isinstance(manifest, dict) or not manifest.get("name"):
        raise InvalidApplication(app, f"{PATHS.manifest_name} in archive has no name")
    return manifest


def _references_branding(entries: Dict[str, bytes]) -> bool:
    for path, data in entries.items():
        if path.endswith(".html") and BRANDING_REF.encode("utf-8") in data:
            return True
    return False


def _package_local(
    source: AppSource,
    branding: BrandingSet,
    locales: Optional[Dict[str, str]],
    config: BuildConfig,
) -> Webapp:
    app_id = source.app_id
    manifest = _load_manifest(app_id, source.path / PATHS.manifest_name)
    origin = canonical_origin(f"app://{app_id}")
    app = Webapp(
        app_id=app_id,
        name=source.name,
        origin=origin,
        manifest=manifest,
        manifest_url=f"{origin}/{PATHS.manifest_name}",
        install_origin=origin,
        packaged=not config.debug,
    )
    if not app.packaged:
        # DEBUG builds serve local apps from the dev server.
        return app

    entries = {rel: f.read_bytes() for rel, f in iter_files(source.path, skip_dirs=SKIP_DIRS)}
    if _references_branding(entries):
        entries.update(branding.archive_entries())
    entries = branding.customize(source.name, entries)
    app = replace(app, entries=entries)

    if locales:
        app = inject(app, build_bundle(source.name, source.path, locales, config, app_id=app_id))
    return app


def _package_external(source: AppSource) -> Webapp:
    app_id = source.app_id
    try:
        metadata = read_json_object(source.path / EXTERNAL_METADATA)
    except MalformedDocument as e:
        raise InvalidApplication(app_id, str(e)) from e
    raw_origin = str(metadata.get("origin") or "")
    if not raw_origin:
        raise InvalidApplication(app_id, f"{EXTERNAL_METADATA} has no origin")
    origin = canonical_origin(raw_origin)

    archive = source.path / PATHS.archive_name
    entries: Dict[str, bytes] = {}
    if archive.exists():
        try:
            entries = read_entries(archive)
        except zipfile.BadZipFile as e:
            raise InvalidApplication(app_id, f"bad {PATHS.archive_name}: {e}") from e

    manifest_path = source.path / PATHS.manifest_name
    if not manifest_path.exists() and (source.path / "update.webapp").exists():
        manifest_path = source.path / "update.webapp"
    if manifest_path.exists() or PATHS.manifest_name not in entries:
        manifest = _load_manifest(app_id, manifest_path)
    else:
        manifest = _manifest_from_archive(app_id, entries[PATHS.manifest_name])

    return Webapp(
        app_id=app_id,
        name=source.name,
        origin=origin,
        manifest=manifest,
        manifest_url=str(metadata.get("manifestURL") or f"{origin}/{PATHS.manifest_name}"),
        install_origin=str(metadata.get("installOrigin") or origin),
        external=True,
        packaged=bool(entries),
        entries=entries,
    )


def package(
    source: AppSource,
    branding: BrandingSet,
    locales: Optional[Dict[str, str]],
    config: BuildConfig,
) -> Webapp:
    if source.external:
        app = _package_external(source)
    else:
        app = _package_local(source, branding, locales, config)
    logger.info(
        "Packaged %s (origin=%s, archive=%s, entries=%d)",
        app.app_id,
        app.origin,
        app.packaged,
        len(app.entries),
    )
    return app


def write_webapp(app: Webapp, webapps_dir: Path, *, epoch: int = 0) -> Path:
    target = webapps_dir / app.app_id
    try:
        target.mkdir(parents=True, exist_ok=True)
        (target / PATHS.manifest_name).write_text(
            json.dumps(app.manifest, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        if app.packaged:
            write_zip(target / PATHS.archive_name, app.entries, epoch=epoch)
    except OSError as e:
        raise PackagingIOError(str(target), str(e), app=app.app_id) from e
    return target


def build_index(apps: List[Webapp], config: BuildConfig) -> Dict[str, Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = {}
    for local_id, app in enumerate(sorted(apps, key=lambda a: a.app_id), start=1):
        index[app.app_id] = app.index_entry(local_id, config.source_date_epoch)
    return index
