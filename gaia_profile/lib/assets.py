from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterator, Tuple

logger = logging.getLogger(__name__)


def iter_files(src: Path, *, skip_dirs: Tuple[str, ...] = ()) -> Iterator[Tuple[str, Path]]:
    """Yield ``(posix relative path, file)`` for every file under ``src`` in sorted order.

    Dot files and top-level directories named in ``skip_dirs`` are left out.
    """
    for item in sorted(src.rglob("*")):
        rel = item.relative_to(src)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if rel.parts[0] in skip_dirs:
            continue
        if item.is_file():
            yield rel.as_posix(), item


def copy_tree(src: str, dst: str) -> None:
    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise FileNotFoundError(src)

    logger.debug("Copying tree %s -> %s", s, d)
    d.mkdir(parents=True, exist_ok=True)
    for item in s.rglob("*"):
        rel = item.relative_to(s)
        out = d / rel
        if item.is_dir():
            out.mkdir(parents=True, exist_ok=True)
        else:
            out.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, out)
