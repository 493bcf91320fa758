from __future__ import annotations

import logging
from typing import Any, Dict

from ..pipeline import AssemblyCtx
from ..settings import merge_settings

logger = logging.getLogger(__name__)


class MergeSettingsStep:
    step_id = "20_merge_settings"

    def run(self, ctx: AssemblyCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        merged = merge_settings(ctx.cfg)
        state["settings"] = merged
        logger.info("Settings merged (%d keys)", len(merged.values))
        return state
