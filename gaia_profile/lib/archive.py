from __future__ import annotations

import io
import time
import zipfile
from pathlib import Path
from typing import Mapping, Tuple


def zip_datetime(epoch: int) -> Tuple[int, int, int, int, int, int]:
    # ZIP timestamps cannot represent dates before 1980.
    if epoch <= 0:
        return (1980, 1, 1, 0, 0, 0)
    t = time.gmtime(epoch)
    year = max(1980, t.tm_year)
    return (year, t.tm_mon, t.tm_mday, t.tm_hour, t.tm_min, t.tm_sec)


def build_zip(entries: Mapping[str, bytes], *, epoch: int = 0) -> bytes:
    """Serialize ``entries`` into zip bytes that depend only on the inputs.

    Entries are written in sorted order with a fixed timestamp and mode.
    """
    zdt = zip_datetime(epoch)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name in sorted(entries):
            zi = zipfile.ZipInfo(name, date_time=zdt)
            zi.compress_type = zipfile.ZIP_DEFLATED
            zi.external_attr = (0o644 & 0xFFFF) << 16
            zi.create_system = 3
            zf.writestr(zi, entries[name])
    return buf.getvalue()


def write_zip(path: Path, entries: Mapping[str, bytes], *, epoch: int = 0) -> None:
    data = build_zip(entries, epoch=epoch)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        path.unlink()
    path.write_bytes(data)


def read_entries(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as zf:
        return {name: zf.read(name) for name in zf.namelist()}
