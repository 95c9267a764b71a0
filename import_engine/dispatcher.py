"""
import_engine.dispatcher - Route a storage notification to an importer.

An object is imported only when it sits under config.WATCH_PREFIX and
its name identifies the entity:

    *empresa*.csv   / *carrier*.csv  → carrier
    *conductor*.csv / *driver*.csv   → driver
    *vehiculo*.csv  / *vehicle*.csv  → vehicle

Matching is case-insensitive.  Anything else is logged and ignored.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import config
from import_engine.errors import StructuralInputError
from import_engine.importer import run_import
from import_engine.report import ImportReport

if TYPE_CHECKING:
    from db.engine import Database
    from services.storage_service import LocalObjectStore

logger = logging.getLogger(__name__)

ENTITY_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("carrier", ("empresa", "carrier")),
    ("driver",  ("conductor", "driver")),
    ("vehicle", ("vehiculo", "vehicle")),
)


def entity_for(name: str) -> Optional[str]:
    """Entity imported from an object name, or None."""
    lower = (name or "").lower()
    if not lower.endswith(".csv"):
        return None
    base = lower.rsplit("/", 1)[-1]
    for entity, needles in ENTITY_PATTERNS:
        if any(n in base for n in needles):
            return entity
    return None


def handle_storage_event(
    database: "Database",
    store: "LocalObjectStore",
    event: dict,
    *,
    prefix: Optional[str] = None,
) -> Optional[ImportReport]:
    """
    Import the object named by a storage-event payload
    ({"bucket": ..., "name": ...}).  Returns None when ignored.
    """
    bucket = event.get("bucket")
    name = event.get("name")
    prefix = config.WATCH_PREFIX if prefix is None else prefix
    logger.info("File received: %s in bucket %s", name, bucket)

    if not bucket or not name:
        raise StructuralInputError("Storage event needs 'bucket' and 'name'",
                                   details={"event": event})

    if not name.startswith(prefix):
        logger.info("File %s ignored (not under %s)", name, prefix)
        return None

    entity = entity_for(name)
    if entity is None:
        logger.info("File %s not recognised, skipping", name)
        return None

    metadata = store.metadata(bucket, name)
    loaded_at = metadata.get("fecha_carga") or datetime.now(timezone.utc).isoformat()
    logger.info("File identified as '%s' (loaded %s)", entity, loaded_at)

    with store.open(bucket, name) as stream:
        return run_import(database, entity, stream, file_name=name)
