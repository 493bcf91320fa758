from __future__ import annotations

import logging
from pathlib import Path

import pytest

from gaia_profile.build_config import BuildConfig, build_config_from_mapping, load_build_config
from gaia_profile.errors import ConfigurationConflict, MalformedDocument, UnknownVariant


def test_defaults() -> None:
    cfg = BuildConfig(raw={})
    assert cfg.variant == "eng"
    assert not cfg.debug and not cfg.desktop and not cfg.device_debug
    assert cfg.profile_folder == "profile"
    assert cfg.locales_file == "shared/resources/languages.json"
    assert cfg.app_url("system") == "app://system.gaiamobile.org"
    assert cfg.distribution_dir is None


def test_debug_derives_desktop_and_dev_server_urls() -> None:
    cfg = build_config_from_mapping({"DEBUG": True})
    assert cfg.desktop
    assert not cfg.device_debug
    assert cfg.profile_folder == "profile-debug"
    assert cfg.app_url("system") == "http://system.gaiamobile.org:8080"


def test_simulator_implies_device_debug_unless_overridden() -> None:
    assert build_config_from_mapping({"SIMULATOR": "1"}).device_debug
    assert not build_config_from_mapping({"SIMULATOR": "1", "DEVICE_DEBUG": "0"}).device_debug


def test_unknown_variant() -> None:
    with pytest.raises(UnknownVariant):
        build_config_from_mapping({"TARGET_BUILD_VARIANT": "nightly"})


def test_load_layers_file_env_and_overrides(tmp_path: Path) -> None:
    path = tmp_path / "build.yaml"
    path.write_text("DEBUG: true\nGAIA_PORT: 9000\nGAIA_DOMAIN: file.org\n", encoding="utf-8")
    cfg = load_build_config(
        str(path),
        environ={"GAIA_DOMAIN": "env.org", "UNRELATED": "x"},
        overrides={"GAIA_PORT": "9100"},
    )
    assert cfg.debug
    assert cfg.domain == "env.org"
    assert cfg.port == 9100
    assert "UNRELATED" not in cfg.raw


def test_load_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "build.yaml"
    path.write_text("- DEBUG\n", encoding="utf-8")
    with pytest.raises(MalformedDocument):
        load_build_config(str(path), environ={})


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_build_config(str(tmp_path / "absent.yaml"), environ={})


def test_log_settings() -> None:
    cfg = BuildConfig(raw={})
    assert cfg.log_path == "logs/gaia-profile.log"
    assert cfg.log_level == logging.INFO

    cfg = build_config_from_mapping({"BUILD_LOG": "/tmp/b.log", "BUILD_LOG_LEVEL": "DEBUG"})
    assert cfg.log_path == "/tmp/b.log"
    assert cfg.log_level == logging.DEBUG


def test_unknown_log_level() -> None:
    with pytest.raises(ConfigurationConflict) as exc:
        build_config_from_mapping({"BUILD_LOG_LEVEL": "chatty"})
    assert exc.value.key == "BUILD_LOG_LEVEL"
