from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..errors import PackagingIOError
from ..lib.env import PATHS
from ..pipeline import AssemblyCtx
from ..prefs_script import render_prefs_script
from ..webapps import build_index

logger = logging.getLogger(__name__)


def _write(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise PackagingIOError(str(path), str(e)) from e


def _dump(obj: Any) -> str:
    return json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


class WriteProfileStep:
    step_id = "60_write_profile"

    def run(self, ctx: AssemblyCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        root = ctx.staging_dir

        _write(root / PATHS.prefs_script, render_prefs_script(state["preferences"]))
        _write(root / PATHS.settings, _dump(state["settings"].values))

        index = build_index(state["webapps"], ctx.cfg)
        _write(root / PATHS.webapps_index, _dump(index))
        state["webapps_index"] = index

        logger.info("Wrote %s, %s and %s", PATHS.prefs_script, PATHS.settings, PATHS.webapps_index)
        return state
