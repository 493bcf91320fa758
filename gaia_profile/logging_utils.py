from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

from .build_config import BuildConfig

FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATEFMT = "%Y-%m-%dT%H:%M:%S%z"
FALLBACK_LOG = "gaia-profile.log"

# Handlers this module attached to the root logger.
_installed: List[logging.Handler] = []


def _file_handler(log_path: str) -> Tuple[logging.Handler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), log_path
    except OSError:
        fallback = str(Path.cwd() / FALLBACK_LOG)
        return logging.FileHandler(fallback, encoding="utf-8"), fallback


def reset_logging() -> None:
    """Detach and close every handler installed by :func:`configure_logging`."""
    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()


def configure_logging(cfg: BuildConfig, *, also_console: bool = True) -> str:
    """Send build logs to ``cfg.log_path`` at ``cfg.log_level``.

    Build decisions (selected overlays, branding, packaged apps) are recorded
    to the file. If that location is not writable the log goes to
    ``gaia-profile.log`` in the current working directory. Calling this again
    replaces the previous handlers.

    Returns the actual file path being used.
    """

    reset_logging()
    root = logging.getLogger()
    root.setLevel(cfg.log_level)

    fmt = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)
    file_handler, chosen_path = _file_handler(cfg.log_path)
    handlers: List[logging.Handler] = [file_handler]
    if also_console:
        handlers.append(logging.StreamHandler())

    for h in handlers:
        h.setFormatter(fmt)
        root.addHandler(h)
        _installed.append(h)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s, level=%s)",
        cfg.log_path,
        chosen_path,
        logging.getLevelName(cfg.log_level),
    )
    return chosen_path
