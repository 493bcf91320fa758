from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence

from .build_config import BuildConfig
from .lib.env import PATHS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssemblyCtx:
    cfg: BuildConfig
    # Tree being written; swapped into place once every step succeeded.
    staging_dir: Path

    @property
    def webapps_dir(self) -> Path:
        return self.staging_dir / PATHS.webapps_dir


class Step(Protocol):
    """A single build step. Steps read and extend the shared state dict."""

    step_id: str

    def run(self, ctx: AssemblyCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]


def run_pipeline(
    *,
    ctx: AssemblyCtx,
    state: Dict[str, Any],
    steps: Sequence[Step],
) -> PipelineResult:
    """Run steps in order; the first failure aborts the run."""

    ran: List[str] = []
    for step in steps:
        state["current_step"] = step.step_id
        logger.info("Running step %s", step.step_id)
        state = step.run(ctx, state)
        ran.append(step.step_id)

    state["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran)
