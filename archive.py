"""In-memory ZIP builder for the generated cards."""

from __future__ import annotations

import tempfile
import time
import zipfile
from typing import Dict

from config import ZIP_SPOOL_MAX_BYTES
from utils import safe_filename_stem

_T0 = time.perf_counter()

# Fixed entry metadata so identical inputs give byte-identical archives
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_ENTRY_MODE = 0o644 << 16


def _log(msg: str) -> None:
    print(f"[archive] +{time.perf_counter() - _T0:.3f}s {msg}", flush=True)


def _safe_entry_name(filename: str) -> str:
    stem, dot, ext = str(filename).rpartition(".")
    if not dot:
        return safe_filename_stem(filename)
    return f"{safe_filename_stem(stem)}.{safe_filename_stem(ext, fallback='bin')}"


class ArchiveBuilder:
    """
    Collects named files and writes them to one ZIP on finalize().

    Entries keep insertion order. Adding a name twice overwrites the first
    entry (the position of the first add is kept).
    """

    def __init__(self, spool_max_bytes: int = ZIP_SPOOL_MAX_BYTES):
        self.spool_max_bytes = spool_max_bytes
        self._entries: Dict[str, bytes] = {}
        self._finalized = False

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def names(self):
        return list(self._entries)

    def add(self, filename: str, data: bytes) -> str:
        """Store one entry; returns the sanitized name actually used."""
        if self._finalized:
            raise RuntimeError("Archive already finalized")
        name = _safe_entry_name(filename)
        if name in self._entries:
            _log(f"overwriting duplicate entry {name}")
        self._entries[name] = bytes(data)
        return name

    def finalize(self) -> bytes:
        """Write every entry to a DEFLATED ZIP and return its bytes. Call once."""
        if self._finalized:
            raise RuntimeError("Archive already finalized")
        self._finalized = True
        # Spooled temp file so large ZIPs spill to disk instead of RAM.
        with tempfile.SpooledTemporaryFile(max_size=self.spool_max_bytes) as zip_buf:
            with zipfile.ZipFile(zip_buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for name, data in self._entries.items():
                    info = zipfile.ZipInfo(name, date_time=_ZIP_EPOCH)
                    info.compress_type = zipfile.ZIP_DEFLATED
                    info.external_attr = _ENTRY_MODE
                    zf.writestr(info, data)
            zip_buf.seek(0)
            out = zip_buf.read()
        _log(f"finalized {len(self._entries)} entries ({len(out)} bytes)")
        return out
