from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional

from .build_config import BuildConfig, load_build_config
from .errors import ProfileBuildError
from .logging_utils import configure_logging
from .profile import ProfileTree, assemble

logger = logging.getLogger(__name__)


def _parse_overrides(pairs: List[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {pair!r}")
        out[key.strip()] = value
    return out


def run(
    *,
    config_path: Optional[str] = None,
    output_dir: str = ".",
    overrides: Optional[Dict[str, str]] = None,
) -> ProfileTree:
    """Load the build configuration, set up logging from it and assemble the profile."""

    try:
        cfg = load_build_config(config_path, overrides=overrides)
    except Exception:
        # Still record why the configuration was rejected.
        configure_logging(BuildConfig(raw={"BUILD_LOG": (overrides or {}).get("BUILD_LOG", "")}))
        logger.exception("Invalid build configuration")
        raise

    configure_logging(cfg)
    try:
        return assemble(cfg, output_dir)
    except Exception:
        logger.exception("Profile build failed")
        raise


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="gaia-profile")
    p.add_argument("--config", default=None, help="YAML file of build flags (overridden by the environment)")
    p.add_argument("--output-dir", default=".", help="Directory that receives profile/ or profile-debug/")
    p.add_argument("--log", default=None, help="Path to build log (BUILD_LOG)")
    p.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a build flag (e.g. --set DEBUG=1); may repeat",
    )
    p.add_argument("-j", "--jobs", default=None, help="Packaging workers (BUILD_JOBS)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log at debug level (BUILD_LOG_LEVEL=debug)")

    args = p.parse_args(argv)
    try:
        overrides = _parse_overrides(args.overrides)
    except argparse.ArgumentTypeError as e:
        p.error(str(e))
    if args.jobs:
        overrides["BUILD_JOBS"] = args.jobs
    if args.log:
        overrides["BUILD_LOG"] = args.log
    if args.verbose:
        overrides["BUILD_LOG_LEVEL"] = "debug"

    try:
        tree = run(config_path=args.config, output_dir=args.output_dir, overrides=overrides)
    except (ProfileBuildError, OSError):
        return 1
    print(tree.root)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
