"""
services.storage_service - Filesystem-backed object store.

Layout:  <root>/<bucket>/<object name>
         <root>/<bucket>/<object name>.meta.json   (custom metadata)

Object names may contain '/', which become sub-directories.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

import config
from import_engine.errors import StreamError

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta.json"


class LocalObjectStore:

    def __init__(self, root: Union[str, Path, None] = None):
        self.root = Path(root) if root is not None else config.STORE_DIR

    def _path(self, bucket: str, name: str) -> Path:
        path = (self.root / bucket / name).resolve()
        base = (self.root / bucket).resolve()
        if base != path and base not in path.parents:
            raise StreamError(f"Object name escapes bucket: {name!r}")
        return path

    # ── Read ───────────────────────────────────────────────────────────

    def exists(self, bucket: str, name: str) -> bool:
        return self._path(bucket, name).is_file()

    def open(self, bucket: str, name: str) -> BinaryIO:
        """Open an object for binary reading.  Caller closes it."""
        path = self._path(bucket, name)
        try:
            return path.open("rb")
        except OSError as exc:
            raise StreamError(f"Cannot open object {bucket}/{name}: {exc}") from exc

    def metadata(self, bucket: str, name: str) -> dict:
        """Custom metadata of an object ({} when none was stored)."""
        if not self.exists(bucket, name):
            raise StreamError(f"Object not found: {bucket}/{name}")
        meta = self._path(bucket, name + META_SUFFIX)
        if not meta.is_file():
            return {}
        try:
            return json.loads(meta.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable metadata for %s/%s: %s", bucket, name, exc)
            return {}

    # ── Write ──────────────────────────────────────────────────────────

    def write(
        self,
        bucket: str,
        name: str,
        data: bytes,
        metadata: Optional[dict] = None,
    ) -> Path:
        path = self._path(bucket, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if metadata:
            self._path(bucket, name + META_SUFFIX).write_text(
                json.dumps(metadata, ensure_ascii=False), encoding="utf-8",
            )
        logger.info("Stored %s/%s (%d bytes)", bucket, name, len(data))
        return path
