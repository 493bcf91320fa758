from __future__ import annotations

import logging
from typing import Any, Dict

from ..pipeline import AssemblyCtx
from ..pref_layers import resolve_preferences

logger = logging.getLogger(__name__)


class ResolvePreferencesStep:
    step_id = "10_resolve_preferences"

    def run(self, ctx: AssemblyCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        prefs = resolve_preferences(ctx.cfg)
        state["preferences"] = prefs
        logger.info("Preferences resolved (user=%d locked=%d)", len(prefs.user), len(prefs.locked))
        return state
