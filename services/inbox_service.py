"""
services.inbox_service - Move new CSV drops into the object store.

<INBOX_DIR>/nuevos/*.csv  →  <BUCKET>/<WATCH_PREFIX><name>  (+ metadata)
                          →  <INBOX_DIR>/procesados/<name>
"""

from __future__ import annotations

import logging
import shutil
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

import config
from import_engine.dispatcher import handle_storage_event
from import_engine.errors import ConfigurationError
from services.storage_service import LocalObjectStore

if TYPE_CHECKING:
    from db.engine import Database

logger = logging.getLogger(__name__)


def _folder(inbox: Path, name: str) -> Path:
    path = inbox / name
    if not path.is_dir():
        raise ConfigurationError(f"Inbox folder '{name}' not found in {inbox}",
                                 details={"path": str(path)})
    return path


def _processed_target(done_dir: Path, name: str) -> Path:
    """Free path in done_dir for name; a clash gets a numeric suffix."""
    target = done_dir / name
    stem, suffix = target.stem, target.suffix
    n = 1
    while target.exists():
        target = done_dir / f"{stem}_{n}{suffix}"
        n += 1
    if target.name != name:
        logger.warning("%s already processed, kept as %s", name, target.name)
    return target


def ingest_inbox(
    store: LocalObjectStore,
    *,
    inbox: Union[str, Path, None] = None,
    bucket: Optional[str] = None,
    prefix: Optional[str] = None,
    database: Optional["Database"] = None,
) -> list[str]:
    """
    Copy every new CSV into the store and move it to 'procesados'.

    Returns the object names written.  When `database` is given each
    object is dispatched to its importer right after the copy.
    """
    inbox = Path(inbox) if inbox is not None else config.INBOX_DIR
    bucket = bucket or config.BUCKET
    prefix = config.WATCH_PREFIX if prefix is None else prefix

    new_dir = _folder(inbox, config.INBOX_NEW)
    done_dir = _folder(inbox, config.INBOX_PROCESSED)

    files = sorted(p for p in new_dir.iterdir()
                   if p.is_file() and p.suffix.lower() == ".csv")
    if not files:
        logger.warning("No files found in '%s'", config.INBOX_NEW)
        return []

    logger.info("Found %d files to ingest", len(files))
    today = date.today().isoformat()
    written: list[str] = []

    for path in files:
        name = f"{prefix}{path.name}"
        store.write(bucket, name, path.read_bytes(), {
            "fecha_carga": today,
            "nombre_archivo_origen": path.name,
        })
        shutil.move(str(path), str(_processed_target(done_dir, path.name)))
        logger.info("File %s copied and moved to '%s'", path.name, config.INBOX_PROCESSED)
        written.append(name)

        if database is not None:
            handle_storage_event(database, store, {"bucket": bucket, "name": name},
                                 prefix=prefix)

    logger.info("Ingest finished: %d files", len(written))
    return written
