"""Profile assembly: run every step into a staging tree, then swap it in."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .build_config import BuildConfig
from .errors import PackagingIOError
from .pipeline import AssemblyCtx, run_pipeline
from .preferences import ResolvedPreferences
from .settings import MergedSettings
from .steps import (
    InstallExtensionsStep,
    MergeSettingsStep,
    PackageWebappsStep,
    ResolvePreferencesStep,
    SelectBrandingStep,
    WriteProfileStep,
)
from .webapps import Webapp

logger = logging.getLogger(__name__)


def build_steps():
    return [
        ResolvePreferencesStep(),
        MergeSettingsStep(),
        SelectBrandingStep(),
        PackageWebappsStep(),
        InstallExtensionsStep(),
        WriteProfileStep(),
    ]


@dataclass(frozen=True)
class ProfileTree:
    root: Path
    preferences: ResolvedPreferences
    settings: MergedSettings
    webapps: List[Webapp]
    webapps_index: Dict[str, Dict[str, Any]]
    extensions: Dict[str, str]
    ran_steps: List[str]

    @property
    def archives(self) -> List[Path]:
        return sorted(self.root.rglob("application.zip"))


def _remove(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    elif path.exists():
        path.unlink()


def assemble(config: BuildConfig, output_dir: str | Path = ".") -> ProfileTree:
    """Build the profile for ``config`` under ``output_dir``.

    A stale profile at the destination is replaced. If any step fails, both the
    staging tree and the previous profile are removed so nothing downstream
    mistakes them for a valid build.
    """

    config.validate()
    out = Path(output_dir).resolve()
    final = out / config.profile_folder
    staging = out / f".{config.profile_folder}.staging"

    logger.info("Assembling %s (variant=%s)", final, config.variant)
    try:
        _remove(staging)
        staging.mkdir(parents=True)
    except OSError as e:
        raise PackagingIOError(str(staging), str(e)) from e

    ctx = AssemblyCtx(cfg=config, staging_dir=staging)
    state: Dict[str, Any] = {}
    try:
        result = run_pipeline(ctx=ctx, state=state, steps=build_steps())
    except Exception:
        logger.error(
            "Profile assembly failed at step %s; removing %s and %s",
            state.get("current_step"),
            staging,
            final,
        )
        shutil.rmtree(staging, ignore_errors=True)
        shutil.rmtree(final, ignore_errors=True)
        raise

    try:
        _remove(final)
        staging.rename(final)
    except OSError as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise PackagingIOError(str(final), str(e)) from e

    state = result.state
    logger.info("Profile ready at %s (steps: %s)", final, ", ".join(result.ran_steps))
    return ProfileTree(
        root=final,
        preferences=state["preferences"],
        settings=state["settings"],
        webapps=state["webapps"],
        webapps_index=state["webapps_index"],
        extensions=state["extensions"],
        ran_steps=result.ran_steps,
    )
