from __future__ import annotations

import pytest

from conftest import write
from gaia_profile.branding import select
from gaia_profile.errors import InvalidApplication
from gaia_profile.lib.archive import build_zip, read_entries
from gaia_profile.webapps import (
    canonical_origin,
    build_index,
    discover_apps,
    package,
    resolve_scheme,
    write_webapp,
)


@pytest.mark.parametrize(
    "origin,scheme",
    [
        ("app://system.gaiamobile.org", "app"),
        ("https://marketplace.allizom.org", "http"),
        ("app://test-app.mochi.test:8888", "http"),
        ("https://m.here.com", "app"),
    ],
)
def test_resolve_scheme(origin: str, scheme: str) -> None:
    assert resolve_scheme(origin) == scheme
    assert canonical_origin(origin).startswith(f"{scheme}://")


def test_canonical_origin_drops_path() -> None:
    assert canonical_origin("https://marketplace.allizom.org/app/") == "http://marketplace.allizom.org"


def test_discover_apps_marks_external(make_config) -> None:
    apps = {a.name: a.external for a in discover_apps(make_config())}
    assert apps == {
        "system": False,
        "homescreen": False,
        "search": False,
        "marketplace.allizom.org": True,
        "here.maps": True,
    }


def test_duplicate_app_name_is_invalid(make_config, gaia_dir) -> None:
    write(gaia_dir / "external-apps/system/metadata.json", {"origin": "app://system"})
    with pytest.raises(InvalidApplication):
        discover_apps(make_config())


def test_external_app_cannot_reuse_local_app_id(make_config, gaia_dir) -> None:
    clash = gaia_dir / "external-apps/system.gaiamobile.org"
    write(clash / "metadata.json", {"origin": "https://system.gaiamobile.org"})
    write(clash / "manifest.webapp", {"name": "Imposter"})
    with pytest.raises(InvalidApplication) as exc:
        discover_apps(make_config())
    assert exc.value.app == "system.gaiamobile.org"
    assert "apps/system" in str(exc.value)
    assert "external-apps/system.gaiamobile.org" in str(exc.value)


def test_discovered_app_ids(make_config) -> None:
    ids = {a.name: a.app_id for a in discover_apps(make_config(GAIA_DOMAIN="example.org"))}
    assert ids["system"] == "system.example.org"
    assert ids["marketplace.allizom.org"] == "marketplace.allizom.org"


def _source(config, name):
    return next(a for a in discover_apps(config) if a.name == name)


def test_local_app_archive_contents(make_config) -> None:
    cfg = make_config()
    app = package(_source(cfg, "system"), select(cfg), {"en-US": ""}, cfg)
    assert app.app_id == "system.gaiamobile.org"
    assert app.origin == "app://system.gaiamobile.org"
    assert app.packaged
    names = set(app.entries)
    assert "index.html" in names
    assert "shared/resources/branding/initlogo.png" in names
    assert "locales-obj/en-US.json" in names
    assert not any(n.startswith(("test/", "build/")) for n in names)


def test_app_without_branding_reference_skips_branding(make_config) -> None:
    cfg = make_config()
    app = package(_source(cfg, "search"), select(cfg), None, cfg)
    assert not any(n.startswith("shared/") for n in app.entries)


def test_debug_local_app_is_not_archived(make_config) -> None:
    cfg = make_config(DEBUG="1")
    app = package(_source(cfg, "system"), select(cfg), None, cfg)
    assert not app.packaged
    assert app.entries == {}


def test_manifest_without_name_is_invalid(make_config, gaia_dir) -> None:
    write(gaia_dir / "apps/search/manifest.webapp", {"type": "privileged"})
    cfg = make_config()
    with pytest.raises(InvalidApplication) as exc:
        package(_source(cfg, "search"), select(cfg), None, cfg)
    assert exc.value.app == "search.gaiamobile.org"


def test_external_packaged_app(make_config) -> None:
    cfg = make_config()
    app = package(_source(cfg, "marketplace.allizom.org"), select(cfg), None, cfg)
    assert app.external and app.packaged
    assert app.manifest == {"name": "Marketplace Stage"}
    assert app.manifest_url == "https://marketplace.allizom.org/packaged.webapp"
    assert app.install_origin == "http://marketplace.allizom.org"


def test_external_bad_archive(make_config, gaia_dir) -> None:
    write(gaia_dir / "external-apps/marketplace.allizom.org/application.zip", b"not a zip")
    cfg = make_config()
    with pytest.raises(InvalidApplication):
        package(_source(cfg, "marketplace.allizom.org"), select(cfg), None, cfg)


def test_write_webapp_is_deterministic(make_config, tmp_path) -> None:
    cfg = make_config()
    app = package(_source(cfg, "system"), select(cfg), {"en-US": ""}, cfg)
    first = write_webapp(app, tmp_path / "a") / "application.zip"
    second = write_webapp(app, tmp_path / "b") / "application.zip"
    assert first.read_bytes() == second.read_bytes()
    assert read_entries(first) == app.entries


def test_build_zip_ignores_insertion_order() -> None:
    a = build_zip({"b.txt": b"2", "a.txt": b"1"})
    b = build_zip({"a.txt": b"1", "b.txt": b"2"})
    assert a == b


def test_build_index(make_config) -> None:
    cfg = make_config(SOURCE_DATE_EPOCH="1000")
    apps = [package(s, select(cfg), None, cfg) for s in discover_apps(cfg)]
    index = build_index(apps, cfg)
    assert list(index) == sorted(index)
    assert [entry["localId"] for entry in index.values()] == list(range(1, len(apps) + 1))
    system = index["system.gaiamobile.org"]
    assert system["appStatus"] == 3
    assert system["installTime"] == 1000000
    assert system["removable"] is False
    assert index["search.gaiamobile.org"]["appStatus"] == 2
    assert index["here.maps"]["removable"] is True
