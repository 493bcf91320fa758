from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional

from ..branding import BrandingSet
from ..locales import load_locales
from ..pipeline import AssemblyCtx
from ..webapps import AppSource, Webapp, discover_apps, package, write_webapp

logger = logging.getLogger(__name__)


class PackageWebappsStep:
    """Package every app concurrently; any failure cancels the rest."""

    step_id = "40_package_webapps"

    def _package_one(
        self,
        ctx: AssemblyCtx,
        source: AppSource,
        branding: BrandingSet,
        locales: Optional[Dict[str, str]],
    ) -> Webapp:
        app = package(source, branding, locales, ctx.cfg)
        write_webapp(app, ctx.webapps_dir, epoch=ctx.cfg.source_date_epoch)
        return app

    def run(self, ctx: AssemblyCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        branding: BrandingSet = state["branding"]
        # Local apps are not archived in DEBUG builds, so no locale bundles either.
        locales = None if cfg.debug else load_locales(cfg)
        if locales is not None:
            logger.info("Locales: %s", ", ".join(locales))

        sources = discover_apps(cfg)
        ctx.webapps_dir.mkdir(parents=True, exist_ok=True)

        pool = ThreadPoolExecutor(max_workers=cfg.jobs, thread_name_prefix="package")
        try:
            futures: Dict[Future, AppSource] = {
                pool.submit(self._package_one, ctx, source, branding, locales): source for source in sources
            }
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            failed = sorted(
                (f for f in done if f.exception() is not None),
                key=lambda f: futures[f].name,
            )
            if failed:
                for f in pending:
                    f.cancel()
                logger.error(
                    "Packaging failed for %s; cancelled %d pending app(s)",
                    ", ".join(futures[f].name for f in failed),
                    len(pending),
                )
                raise failed[0].exception()  # type: ignore[misc]
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

        webapps: List[Webapp] = sorted((f.result() for f in done), key=lambda a: a.app_id)
        state["webapps"] = webapps
        logger.info(
            "Packaged %d app(s), %d archive(s)",
            len(webapps),
            sum(1 for app in webapps if app.packaged),
        )
        return state
