"""
import_engine.row_processor - Base class for per-entity row importers.

Single-responsibility: given a dict-row and a session positioned inside
an open row transaction, write the row (primary upsert + children) and
return a RowOutcome.  The caller owns COMMIT / ROLLBACK.

Row life-cycle:
    PENDING → VALIDATING → RESOLVING_FOREIGN_KEYS → UPSERTING_PRIMARY
            → EXPANDING_CHILDREN → COMMITTED
    any non-terminal state → ROLLED_BACK
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from import_engine.catalog import CatalogCache
from import_engine.errors import ConstraintViolation, LoaderError, RowError
from normalize import blank_to_none


class RowState(str, Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    RESOLVING_FOREIGN_KEYS = "resolving_foreign_keys"
    UPSERTING_PRIMARY = "upserting_primary"
    EXPANDING_CHILDREN = "expanding_children"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


TERMINAL_STATES = frozenset({RowState.COMMITTED, RowState.ROLLED_BACK})


@dataclass
class RowOutcome:
    key: Optional[str] = None
    state: RowState = RowState.PENDING
    kind: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind is None

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: RowState) -> None:
        if self.terminal:
            raise RuntimeError(f"Row already {self.state.value}")
        self.state = state

    def reject(self, kind: type[LoaderError] | str, reason: str) -> None:
        self.kind = kind if isinstance(kind, str) else kind.__name__
        self.reason = reason

    def finish(self, committed: bool) -> None:
        if self.terminal:
            raise RuntimeError(f"Row already {self.state.value}")
        self.state = RowState.COMMITTED if committed else RowState.ROLLED_BACK


class RowProcessor:
    """
    Stateful importer for one entity.  Owns the run's catalog caches so
    that rows in the same file observe each other's committed writes.
    """

    entity: str = ""
    key_column: str = ""

    def __init__(self):
        self.caches: list[CatalogCache] = []
        self.current: Optional[RowOutcome] = None

    # ── Cache life-cycle ───────────────────────────────────────────────

    def load_caches(self, session: Session) -> None:
        for cache in self.caches:
            cache.preload(session)

    def commit_pending(self) -> None:
        for cache in self.caches:
            cache.commit_pending()

    def discard_pending(self) -> None:
        for cache in self.caches:
            cache.discard_pending()

    # ── Row processing ─────────────────────────────────────────────────

    def process(self, session: Session, row: dict) -> RowOutcome:
        """
        Import one row.  Validation and referential failures and
        storage errors come back as a rejected outcome.
        """
        outcome = self.current = RowOutcome(key=blank_to_none(row.get(self.key_column)))
        try:
            self._process(session, row, outcome)
        except RowError as exc:
            outcome.reject(exc.kind, str(exc))
        except SQLAlchemyError as exc:
            outcome.reject(ConstraintViolation, describe_db_error(exc))
        return outcome

    def _process(self, session: Session, row: dict, outcome: RowOutcome) -> None:
        raise NotImplementedError


# ── Helpers shared by the entity importers ────────────────────────────

def describe_db_error(exc: SQLAlchemyError) -> str:
    """First line of the driver message, without SQLAlchemy's SQL echo."""
    orig = getattr(exc, "orig", None)
    msg = str(orig if orig is not None else exc).strip()
    return msg.splitlines()[0] if msg else type(exc).__name__


def require(row: dict, column: str) -> str:
    """Normalized value of a mandatory column, or RowError."""
    value = blank_to_none(row.get(column))
    if value is None:
        raise RowError(f"'{column}' is empty")
    return value


def load_document(row: dict, column: str) -> Optional[dict]:
    """Parse an embedded JSON object column.  Blank → None."""
    raw = row.get(column)
    if raw is None or not str(raw).strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RowError(f"'{column}' is not valid JSON: {exc.msg}") from exc
    if data is None:
        return None
    if not isinstance(data, dict):
        raise RowError(f"'{column}' must hold a JSON object")
    return data


def sub_document(doc: dict, name: str) -> dict:
    """Nested object of a document; missing → {}."""
    value = doc.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RowError(f"'{name}' must be a JSON object")
    return value


def entries(doc: dict, name: str) -> list[dict]:
    """Array of objects inside a document; missing → []."""
    value = doc.get(name)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise RowError(f"'{name}' must be a JSON array of objects")
    return value


def text(value: Any) -> Optional[str]:
    """Document scalar as text (numbers included), or None."""
    if isinstance(value, (dict, list)):
        raise RowError(f"Expected a scalar, got {type(value).__name__}")
    return blank_to_none(value)
