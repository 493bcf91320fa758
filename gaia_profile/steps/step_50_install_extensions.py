from __future__ import annotations

import json
import logging
from typing import Any, Dict

from ..errors import PackagingIOError
from ..lib.assets import copy_tree
from ..lib.env import PATHS
from ..pipeline import AssemblyCtx

logger = logging.getLogger(__name__)


class InstallExtensionsStep:
    """Copy the desktop dev-tooling extensions into DESKTOP profiles."""

    step_id = "50_install_extensions"

    def run(self, ctx: AssemblyCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        if not ctx.cfg.desktop:
            state["extensions"] = {}
            return state

        src_root = ctx.cfg.gaia_dir / PATHS.extensions_src
        installed: Dict[str, str] = {}
        try:
            if src_root.is_dir():
                for ext in sorted(p for p in src_root.iterdir() if p.is_dir()):
                    rel = f"{PATHS.extensions_dir}/{ext.name}"
                    copy_tree(str(ext), str(ctx.staging_dir / rel))
                    installed[ext.name] = rel
            else:
                logger.info("No extensions under %s", src_root)

            out = ctx.staging_dir / PATHS.installed_extensions
            out.write_text(json.dumps(installed, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as e:
            raise PackagingIOError(str(ctx.staging_dir / PATHS.extensions_dir), str(e)) from e

        logger.info("Installed extensions: %s", ", ".join(installed) or "(none)")
        state["extensions"] = installed
        return state
