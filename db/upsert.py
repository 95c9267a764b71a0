"""
db.upsert - INSERT … ON CONFLICT helpers.

PostgreSQL and SQLite share the same ON CONFLICT / RETURNING syntax, so
one statement builder serves both; the dialect-specific insert()
construct is picked from the session's bind.
"""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy.orm import Session


def dialect_insert(session: Session, table):
    """Dialect insert() for the session's backend (supports on_conflict_*)."""
    name = session.get_bind().dialect.name
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"ON CONFLICT upsert not supported for {name!r}")
    return insert(table)


def upsert(
    session: Session,
    model,
    values: dict[str, Any],
    *,
    conflict: Iterable[str],
    returning: str,
    keep: Iterable[str] = (),
) -> Any:
    """
    Insert `values` into `model`'s table; on a conflict on `conflict`
    update every other supplied column except those in `keep`.
    Returns the `returning` column of the inserted or existing row.

    With nothing left to update the conflict columns are rewritten with
    their own value, so RETURNING still yields the existing row.
    """
    conflict = list(conflict)
    skip = set(conflict) | set(keep)
    table = model.__table__

    stmt = dialect_insert(session, table).values(**values)
    set_ = {col: stmt.excluded[col] for col in values if col not in skip}
    if not set_:
        set_ = {col: stmt.excluded[col] for col in conflict}

    stmt = stmt.on_conflict_do_update(index_elements=conflict, set_=set_)
    stmt = stmt.returning(table.c[returning])
    return session.execute(stmt).scalar_one()
