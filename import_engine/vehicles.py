"""
import_engine.vehicles - Vehicle rows.

Mandatory: registration_plate, carrier_bp (existing carrier).
Optional catalog labels: vehicle_type, vehicle_designation,
vehicle_make (brand) and vehicle_model; a model needs a brand.

Per row:
  1. upsert vehicle on registration_plate; carrier_id is written on
     insert only and never changes afterwards
  2. one technical_inspection snapshot (always)
  3. circulation_permit / insurance / ownership_certificate from their
     JSON columns when present
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from db.models import (
    CirculationPermit, Insurance, OwnershipCertificate, TechnicalInspection,
    Vehicle, utcnow,
)
from db.upsert import upsert
from import_engine.catalog import (
    VEHICLE_BRAND, VEHICLE_DESIGNATION, VEHICLE_TYPE,
    Catalog, CarrierDirectory, ModelCatalog, resolve, resolve_model,
)
from import_engine.errors import ReferentialError, RowError
from import_engine.field_map import (
    INSPECTION_DATE_FIELDS, INSPECTION_STATUS_COLUMNS,
    INSURANCE_DOC, OWNERSHIP_DOC, PERMIT_DOC,
    VEHICLE_BOOL_FIELDS, VEHICLE_DATE_FIELDS, VEHICLE_FLOAT_FIELDS,
    VEHICLE_INT_FIELDS, VEHICLE_TEXT_FIELDS,
)
from import_engine.row_processor import (
    RowOutcome, RowProcessor, RowState, load_document, require, sub_document, text,
)
from normalize import (
    blank_to_none, coerce_bool, coerce_float, coerce_int, coerce_status,
    parse_flexible_date, validate_rut,
)

# Columns the upsert must never overwrite on conflict
IMMUTABLE_COLUMNS = ("carrier_id", "created_at")


class VehicleImporter(RowProcessor):

    entity = "vehicle"
    key_column = "registration_plate"

    def __init__(self):
        super().__init__()
        self.carriers = CarrierDirectory()
        self.types = Catalog(VEHICLE_TYPE)
        self.designations = Catalog(VEHICLE_DESIGNATION)
        self.brands = Catalog(VEHICLE_BRAND)
        self.models = ModelCatalog()
        self.caches = [self.carriers, self.types, self.designations,
                       self.brands, self.models]

    def _process(self, session: Session, row: dict, outcome: RowOutcome) -> None:
        outcome.advance(RowState.VALIDATING)
        plate = blank_to_none(row.get("registration_plate"))
        if plate is None:
            raise RowError("'registration_plate' is empty")
        outcome.key = plate

        carrier_bp = require(row, "carrier_bp")
        brand = blank_to_none(row.get("vehicle_make"))
        model = blank_to_none(row.get("vehicle_model"))
        if model and not brand:
            raise RowError(f"Vehicle model '{model}' given without 'vehicle_make'")

        documents = {col: load_document(row, col)
                     for col in (PERMIT_DOC, INSURANCE_DOC, OWNERSHIP_DOC)}
        values = self._vehicle_values(row)

        outcome.advance(RowState.RESOLVING_FOREIGN_KEYS)
        carrier_id = self.carriers.lookup(session, carrier_bp)
        if carrier_id is None:
            raise RowError(f"Carrier with carrier_bp '{carrier_bp}' not found "
                           f"for plate '{plate}'", ReferentialError)

        values["registration_plate"] = plate
        values["carrier_id"] = carrier_id
        values["vehicle_type_id"] = self._optional(session, self.types, row.get("vehicle_type"))
        values["vehicle_designation_id"] = self._optional(
            session, self.designations, row.get("vehicle_designation"))

        brand_id = self._optional(session, self.brands, brand)
        values["vehicle_model_id"] = (
            resolve_model(session, self.models, brand_id, brand, model) if model else None
        )

        outcome.advance(RowState.UPSERTING_PRIMARY)
        vehicle_id = upsert(
            session, Vehicle, values,
            conflict=("registration_plate",),
            keep=IMMUTABLE_COLUMNS,
            returning="vehicle_id",
        )

        outcome.advance(RowState.EXPANDING_CHILDREN)
        session.add(self._inspection(vehicle_id, row))

        if documents[PERMIT_DOC]:
            doc = documents[PERMIT_DOC]
            session.add(CirculationPermit(
                vehicle_id=vehicle_id,
                municipality=text(doc.get("municipalidad")),
                issued_on=parse_flexible_date(doc.get("fecha_emision")),
                expires_on=parse_flexible_date(doc.get("fecha_vencimiento")),
            ))

        if documents[INSURANCE_DOC]:
            doc = documents[INSURANCE_DOC]
            session.add(Insurance(
                vehicle_id=vehicle_id,
                policy_number=text(doc.get("numero_poliza")),
                insurer=text(doc.get("institucion_aseguradora")),
                policy_expires_on=parse_flexible_date(doc.get("fecha_vencimiento_poliza")),
            ))

        if documents[OWNERSHIP_DOC]:
            session.add(self._ownership(vehicle_id, documents[OWNERSHIP_DOC]))

        session.flush()

    # ── Helpers ────────────────────────────────────────────────────────

    @staticmethod
    def _optional(session: Session, catalog: Catalog, label):
        """Catalog id, or None when the label is blank."""
        return resolve(session, catalog, label) if blank_to_none(label) else None

    @staticmethod
    def _vehicle_values(row: dict) -> dict:
        now = utcnow()
        values: dict = {"created_at": now, "updated_at": now}
        for col, attr in VEHICLE_TEXT_FIELDS.items():
            values[attr] = blank_to_none(row.get(col))
        for col, attr in VEHICLE_INT_FIELDS.items():
            values[attr] = coerce_int(row.get(col))
        for col, attr in VEHICLE_FLOAT_FIELDS.items():
            values[attr] = coerce_float(row.get(col))
        for col, attr in VEHICLE_BOOL_FIELDS.items():
            values[attr] = coerce_bool(row.get(col))
        for col, attr in VEHICLE_DATE_FIELDS.items():
            values[attr] = parse_flexible_date(row.get(col))
        return values

    @staticmethod
    def _inspection(vehicle_id: int, row: dict) -> TechnicalInspection:
        fields = {attr: parse_flexible_date(row.get(col))
                  for col, attr in INSPECTION_DATE_FIELDS.items()}
        for col in INSPECTION_STATUS_COLUMNS:
            fields[col] = coerce_status(row.get(col))
        return TechnicalInspection(vehicle_id=vehicle_id, **fields)

    @staticmethod
    def _ownership(vehicle_id: int, doc: dict) -> OwnershipCertificate:
        owner = sub_document(doc, "datos_propietario_actual")
        owner_rut = validate_rut(owner.get("rut"))
        return OwnershipCertificate(
            vehicle_id=vehicle_id,
            folio=text(doc.get("folio")),
            verification_code=text(doc.get("codigo_verificacion")),
            issued_on=parse_flexible_date(doc.get("fecha_emision")),
            domain_limitations=text(doc.get("limitaciones_al_dominio")),
            owner_name=text(owner.get("nombre")),
            owner_rut=owner_rut.value if owner_rut.valid else text(owner.get("rut")),
            acquired_on=parse_flexible_date(owner.get("fecha_adquisicion")),
        )
