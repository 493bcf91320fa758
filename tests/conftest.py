import json
import sys
import zipfile
from pathlib import Path
from typing import Dict

import pytest

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent

# Make the package importable without installing it.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from gaia_profile.build_config import BuildConfig, build_config_from_mapping  # noqa: E402
from gaia_profile.logging_utils import reset_logging  # noqa: E402

OFFICIAL_LOGO = b"\x89PNG official logo"
UNOFFICIAL_LOGO = b"\x89PNG unofficial logo"

COMMON_SETTINGS = {
    "apz.force-enable": False,
    "debug.console.enabled": False,
    "developer.menu.enabled": False,
    "devtools.debugger.remote-enabled": False,
    "feedback.url": "https://input.allizom.org/api/v1/feedback/",
    "keyboard.enabled-layouts": {"app://keyboard.gaiamobile.org/manifest.webapp": {"en": True}},
    "language.current": "en-US",
    "lockscreen.enabled": True,
    "lockscreen.locked": True,
    "screen.timeout": 60,
    "wap.push.enabled": True,
}

HOMESCREEN_INIT = {
    "search_page": {"enabled": True, "provider": "EverythingME"},
    "swipe": {"threshold": 0.4, "friction": 0.1},
    "grid": [["dialer", "sms"]],
}


def write(path: Path, content) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    elif isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_text(json.dumps(content, indent=2), encoding="utf-8")
    return path


def make_zip(path: Path, entries: Dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


@pytest.fixture(autouse=True)
def _detach_build_log():
    yield
    reset_logging()


@pytest.fixture()
def gaia_dir(tmp_path: Path) -> Path:
    """A miniature Gaia source tree."""
    root = tmp_path / "gaia"

    write(root / "apps/system/manifest.webapp", {"name": "System", "type": "certified"})
    write(
        root / "apps/system/index.html",
        '<html><body><img src="/shared/resources/branding/initlogo.png"></body></html>\n',
    )
    write(root / "apps/system/js/system.js", "window.System = {};\n")
    write(root / "apps/system/locales/system.en-US.properties", "title = System\nunlock = Unlock\n")
    write(root / "apps/system/test/unit/system_test.js", "suite('system', function() {});\n")
    write(root / "apps/system/build/build.js", "// app build hook\n")

    write(root / "apps/homescreen/manifest.webapp", {"name": "Homescreen", "type": "certified"})
    write(root / "apps/homescreen/index.html", "<html><body></body></html>\n")
    write(root / "apps/homescreen/js/init.json", HOMESCREEN_INIT)

    write(root / "apps/search/manifest.webapp", {"name": "Search", "type": "privileged"})
    write(root / "apps/search/index.html", "<html></html>\n")

    market = root / "external-apps/marketplace.allizom.org"
    write(
        market / "metadata.json",
        {
            "origin": "app://marketplace.allizom.org",
            "manifestURL": "https://marketplace.allizom.org/packaged.webapp",
        },
    )
    make_zip(
        market / "application.zip",
        {
            "manifest.webapp": json.dumps({"name": "Marketplace Stage"}).encode("utf-8"),
            "index.html": b"<html></html>",
        },
    )

    maps = root / "external-apps/here.maps"
    write(maps / "metadata.json", {"origin": "https://m.here.com", "installOrigin": "https://m.here.com"})
    write(maps / "manifest.webapp", {"name": "HERE Maps"})

    write(root / "shared/resources/branding/official/initlogo.png", OFFICIAL_LOGO)
    write(root / "shared/resources/branding/unofficial/initlogo.png", UNOFFICIAL_LOGO)
    write(root / "shared/resources/languages.json", {"en-US": "English (US)"})

    write(root / "build/config/common-settings.json", COMMON_SETTINGS)

    tablet = root / "distribution_tablet"
    write(tablet / "settings.json", {"wap.push.enabled": False})
    write(
        tablet / "apps/homescreen/js/init.json",
        {"search_page": {"enabled": False}, "swipe": {"threshold": 0.25}},
    )
    write(tablet / "custom-prefs.js", 'user_pref("b2g.tablet.mode", true);\npref("dom.mms.retrieval_mode", "manual");\n')

    write(root / "tools/extensions/httpd/bootstrap.js", "// dev server\n")

    write(root / "locales/zh-CN/apps/system/system.properties", "title = \\u7cfb\\u7edf\n")
    write(root / "locales/languages.json", {"en-US": "", "zh-CN": ""})

    return root


@pytest.fixture()
def make_config(gaia_dir: Path):
    def _make(**flags: str) -> BuildConfig:
        return build_config_from_mapping({"GAIA_DIR": str(gaia_dir), "BUILD_JOBS": "2"}, flags)

    return _make
