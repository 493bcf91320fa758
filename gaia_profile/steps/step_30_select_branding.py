from __future__ import annotations

from typing import Any, Dict

from .. import branding
from ..pipeline import AssemblyCtx


class SelectBrandingStep:
    step_id = "30_select_branding"

    def run(self, ctx: AssemblyCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        state["branding"] = branding.select(ctx.cfg)
        return state
