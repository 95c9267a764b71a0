"""
import_engine.carriers - Carrier (empresa) rows.

Columns: carrier_type, carrier_name, carrier_tin, carrier_bp (all
mandatory).  carrier_tin must be a valid RUT; it is stored without dots.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from db.models import Carrier, utcnow
from db.upsert import upsert
from import_engine.catalog import CARRIER_TYPE, Catalog, resolve
from import_engine.errors import RowError
from import_engine.row_processor import RowOutcome, RowProcessor, RowState, require
from normalize import validate_rut


class CarrierImporter(RowProcessor):

    entity = "carrier"
    key_column = "carrier_tin"

    def __init__(self):
        super().__init__()
        self.carrier_types = Catalog(CARRIER_TYPE)
        self.caches = [self.carrier_types]

    def _process(self, session: Session, row: dict, outcome: RowOutcome) -> None:
        outcome.advance(RowState.VALIDATING)
        rut = validate_rut(row.get("carrier_tin"))
        if not rut.valid:
            raise RowError(f"Invalid RUT: '{row.get('carrier_tin')}'")
        outcome.key = rut.value

        carrier_type = require(row, "carrier_type")
        carrier_name = require(row, "carrier_name")
        carrier_bp = require(row, "carrier_bp")

        outcome.advance(RowState.RESOLVING_FOREIGN_KEYS)
        type_id = resolve(session, self.carrier_types, carrier_type)

        outcome.advance(RowState.UPSERTING_PRIMARY)
        now = utcnow()
        upsert(
            session, Carrier,
            {
                "carrier_rut":     rut.value,
                "carrier_name":    carrier_name,
                "carrier_type_id": type_id,
                "carrier_bp":      carrier_bp,
                "created_at":      now,
                "updated_at":      now,
            },
            conflict=("carrier_rut",),
            keep=("created_at",),
            returning="carrier_id",
        )
