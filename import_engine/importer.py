"""
import_engine.importer - Top-level orchestrator.

Coordinates csv_parser → row processor → per-row COMMIT / ROLLBACK and
produces a structured ImportReport.

Rows are processed strictly in file order, one transaction each: a row
either commits completely (primary upsert + every child) or leaves no
trace.  A rejected row never stops the file; a failing source stream
does, keeping the rows committed so far.
"""

from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from import_engine.carriers import CarrierImporter
from import_engine.csv_parser import Source, iter_rows, prepare_reader
from import_engine.drivers import DriverImporter
from import_engine.errors import ConstraintViolation, StreamError
from import_engine.report import ImportReport
from import_engine.row_processor import RowOutcome, RowProcessor, describe_db_error
from import_engine.vehicles import VehicleImporter

if TYPE_CHECKING:
    from db.engine import Database

logger = logging.getLogger(__name__)

IMPORTERS: dict[str, type[RowProcessor]] = {
    CarrierImporter.entity: CarrierImporter,
    DriverImporter.entity:  DriverImporter,
    VehicleImporter.entity: VehicleImporter,
}

# Failures of the source itself, as opposed to a bad row
STREAM_FAILURES = (UnicodeDecodeError, csv.Error, OSError)


def make_processor(entity: str) -> RowProcessor:
    try:
        return IMPORTERS[entity]()
    except KeyError:
        raise ValueError(f"Unknown entity {entity!r} "
                         f"(expected one of {', '.join(IMPORTERS)})") from None


def run_import(
    database: "Database",
    entity: str,
    source: Source,
    *,
    file_name: Optional[str] = None,
) -> ImportReport:
    """
    Import one delimited file of `entity` rows.

    Parameters
    ----------
    database  : Database providing the session (released on every path)
    entity    : 'carrier' | 'driver' | 'vehicle'
    source    : raw CSV (bytes, str or binary stream)
    file_name : for logging / the report only

    Returns
    -------
    ImportReport with per-row rejections; report.fatal is set when the
    stream failed and the remaining rows were not attempted.
    """
    processor = make_processor(entity)
    report = ImportReport(entity=entity, file_name=file_name)
    label = file_name or f"<{entity} upload>"
    logger.info("Processing %s file: %s", entity, label)

    with database.scoped_session() as session:
        processor.load_caches(session)
        session.commit()   # end the preload read transaction

        try:
            reader = prepare_reader(source)
            if reader is None:
                report.set_fatal("CSV has no header row or is empty")
                logger.error("%s: %s", label, report.fatal)
                return report

            for row_idx, row in enumerate(iter_rows(reader), start=2):   # row 1 = header
                report.total_rows += 1
                _import_row(session, processor, row_idx, row, report)

        except STREAM_FAILURES as exc:
            err = StreamError(f"Stream failed after {report.total_rows} rows: {exc}",
                              row=report.total_rows + 1)
            report.set_fatal(str(err))
            logger.error("Fatal error processing %s, remaining rows skipped: %s", label, err)
        except SQLAlchemyError as exc:
            session.rollback()
            report.set_fatal(f"Database failure: {describe_db_error(exc)}")
            logger.error("Fatal error processing %s, remaining rows skipped: %s",
                         label, report.fatal)

    logger.info("Processing of %s completed. %s", label, report.summary())
    return report


def _import_row(
    session: Session,
    processor: RowProcessor,
    row_idx: int,
    row: dict,
    report: ImportReport,
) -> RowOutcome:
    logger.debug("[Row %d] Transaction started", row_idx)
    session.begin()
    try:
        outcome = processor.process(session, row)
        if outcome.ok:
            session.commit()
    except SQLAlchemyError as exc:
        # Deferred constraint checked at COMMIT
        outcome = processor.current or RowOutcome()
        outcome.reject(ConstraintViolation, describe_db_error(exc))
    except Exception as exc:
        logger.exception("[Row %d] Unexpected error", row_idx)
        outcome = processor.current or RowOutcome()
        outcome.reject("UnexpectedError", f"Unexpected: {exc}")

    if outcome.ok:
        processor.commit_pending()
        session.expunge_all()
        outcome.finish(committed=True)
        report.committed += 1
        return outcome

    session.rollback()
    processor.discard_pending()
    outcome.finish(committed=False)
    report.add_rejection(row_idx, outcome.key, outcome.kind, outcome.reason)
    log = logger.error if outcome.kind == ConstraintViolation.__name__ else logger.warning
    log("[Row %d] %s for '%s', row rolled back: %s",
        row_idx, outcome.kind, outcome.key, outcome.reason)
    return outcome
