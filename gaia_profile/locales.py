"""Per-locale resource bundles injected into webapp archives.

Strings for the source locale come from the app's own
``*.<locale>.properties`` files. Other locales come from a locale root laid
out as ``<root>/<locale>/apps/<app>/**/*.properties``; a localized app
missing from a requested locale fails the build.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

from .build_config import BuildConfig
from .errors import MalformedDocument, MissingLocaleResource
from .lib.env import PATHS
from .lib.manifests import read_json_object

if TYPE_CHECKING:
    from .webapps import Webapp

logger = logging.getLogger(__name__)

_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "f": "\f"}


def _unescape(value: str) -> str:
    def sub(m: re.Match) -> str:
        token = m.group(1)
        if token.startswith("u") and len(token) == 5:
            return chr(int(token[1:], 16))
        return _ESCAPES.get(token, token)

    return _ESCAPE.sub(sub, value)


def _continues(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def parse_properties(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    buf = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not buf and (not line or line[0] in "#!"):
            continue
        if _continues(line):
            buf += line[:-1]
            continue
        line, buf = buf + line, ""
        key, sep, value = line.partition("=")
        if sep:
            out[key.strip()] = _unescape(value.strip())
    return out


@dataclass(frozen=True)
class LocaleBundle:
    # locale code -> display name, in request order
    names: Dict[str, str]
    # locale code -> resource object
    resources: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def archive_entries(self) -> Dict[str, bytes]:
        entries: Dict[str, bytes] = {}
        for code, strings in self.resources.items():
            entries[f"{PATHS.locales_in_archive}/{code}.json"] = _dump(strings)
        entries[f"{PATHS.locales_in_archive}/index.json"] = _dump(
            {code: self.names.get(code, "") for code in self.resources}
        )
        return entries


def _dump(obj: object) -> bytes:
    return (json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n").encode("utf-8")


def load_locales(config: BuildConfig) -> Dict[str, str]:
    """Locales to build: the configured languages file, as ``{code: name}``."""
    path = config.locales_path
    if not path.exists():
        raise MalformedDocument(str(path), "locales file not found")
    data = read_json_object(path)
    return {str(code): str(name or "") for code, name in data.items()}


def _source_strings(app_dir: Path, locale: str) -> Optional[Dict[str, str]]:
    files = sorted(app_dir.rglob(f"*.{locale}.properties"))
    if not files:
        return None
    strings: Dict[str, str] = {}
    for f in files:
        strings.update(parse_properties(f.read_text(encoding="utf-8")))
    return strings


def _root_strings(root: Path, locale: str, app_name: str, app_id: str) -> Dict[str, str]:
    strings: Dict[str, str] = {}
    app_root = root / locale / "apps" / app_name
    if not app_root.is_dir():
        raise MissingLocaleResource(locale, app_id, str(app_root))
    for f in sorted(app_root.rglob("*.properties")):
        strings.update(parse_properties(f.read_text(encoding="utf-8")))
    return strings


def build_bundle(
    app_name: str,
    app_dir: Path,
    locales: Dict[str, str],
    config: BuildConfig,
    *,
    app_id: Optional[str] = None,
) -> Optional[LocaleBundle]:
    """Collect resources for every requested locale, or None for unlocalized apps."""
    source = _source_strings(app_dir, config.default_locale)
    if source is None:
        return None

    root = config.locale_root
    resources: Dict[str, Dict[str, str]] = {}
    for code in locales:
        if code == config.default_locale:
            resources[code] = source
            continue
        if root is None or not (root / code).is_dir():
            raise MissingLocaleResource(code, app_id or app_name, str(root / code) if root else "<no LOCALE_BASEDIR>")
        resources[code] = _root_strings(root, code, app_name, app_id or app_name)
    return LocaleBundle(names=dict(locales), resources=resources)


def inject(app: "Webapp", bundle: Optional[LocaleBundle]) -> "Webapp":
    if bundle is None:
        return app
    entries = dict(app.entries)
    entries.update(bundle.archive_entries())
    logger.debug("Injected locales %s into %s", ",".join(bundle.resources), app.app_id)
    return replace(app, entries=entries, locales=tuple(bundle.resources))
