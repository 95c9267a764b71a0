"""
import_engine.drivers - Driver (conductor) rows.

Mandatory: carrier_bp (existing carrier), national_id (valid RUT),
driver_role (catalog).  Optional: driver_name, birth_date,
phone_number, email and two embedded JSON documents:

  hoja_de_vida_data      career record certificate; expanded into one
                         career_record row + its restrictions and
                         infractions (only when it holds 'certificado')
  licencia_frontal_data  license card front / back; both are needed.
  licencia_reverso_data  One license row + one class link per class.

Children are appended on every import; the driver row is upserted.
"""

from __future__ import annotations

import logging

from sqlalchemy import insert
from sqlalchemy.orm import Session

from db.models import (
    CareerInfraction, CareerRecord, CareerRestriction, Driver, License,
    license_class_link, utcnow,
)
from db.upsert import upsert
from import_engine.catalog import (
    DRIVER_ROLE, LICENSE_CLASS, Catalog, CarrierDirectory, resolve,
)
from import_engine.errors import ReferentialError, RowError
from import_engine.field_map import (
    CAREER_DOC, DRIVER_DATE_FIELDS, DRIVER_TEXT_FIELDS,
    LICENSE_BACK_DOC, LICENSE_FRONT_DOC,
)
from import_engine.row_processor import (
    RowOutcome, RowProcessor, RowState,
    entries, load_document, require, sub_document, text,
)
from normalize import blank_to_none, normalize_text, parse_flexible_date, validate_rut

logger = logging.getLogger(__name__)


class DriverImporter(RowProcessor):

    entity = "driver"
    key_column = "national_id"

    def __init__(self):
        super().__init__()
        self.carriers = CarrierDirectory()
        self.roles = Catalog(DRIVER_ROLE)
        self.license_classes = Catalog(LICENSE_CLASS)
        self.caches = [self.carriers, self.roles, self.license_classes]

    def _process(self, session: Session, row: dict, outcome: RowOutcome) -> None:
        outcome.advance(RowState.VALIDATING)
        rut = validate_rut(row.get("national_id"))
        if not rut.valid:
            raise RowError(f"Invalid RUT: '{row.get('national_id')}'")
        outcome.key = rut.value

        carrier_bp = require(row, "carrier_bp")
        role = blank_to_none(row.get("driver_role"))
        if role is None:
            raise RowError("'driver_role' is empty")

        career = load_document(row, CAREER_DOC)
        front = load_document(row, LICENSE_FRONT_DOC)
        back = load_document(row, LICENSE_BACK_DOC)

        outcome.advance(RowState.RESOLVING_FOREIGN_KEYS)
        carrier_id = self.carriers.lookup(session, carrier_bp)
        if carrier_id is None:
            raise RowError(f"Carrier with carrier_bp '{carrier_bp}' not found",
                           ReferentialError)
        role_id = resolve(session, self.roles, role)

        outcome.advance(RowState.UPSERTING_PRIMARY)
        now = utcnow()
        values = {
            "driver_rut":     rut.value,
            "carrier_id":     carrier_id,
            "driver_role_id": role_id,
            "created_at":     now,
            "updated_at":     now,
        }
        for col, attr in DRIVER_TEXT_FIELDS.items():
            values[attr] = blank_to_none(row.get(col))
        for col, attr in DRIVER_DATE_FIELDS.items():
            values[attr] = parse_flexible_date(row.get(col))

        driver_id = upsert(
            session, Driver, values,
            conflict=("driver_rut",),
            keep=("created_at",),
            returning="driver_id",
        )

        outcome.advance(RowState.EXPANDING_CHILDREN)
        if career:
            self._add_career_record(session, driver_id, career)
        if front is not None and back is not None:
            self._add_license(session, driver_id, front, back)
        elif front is not None or back is not None:
            logger.warning("Driver %s: license needs both front and back, skipped", rut.value)

    # ── Children ───────────────────────────────────────────────────────

    @staticmethod
    def _add_career_record(session: Session, driver_id: int, doc: dict) -> None:
        certificate = sub_document(doc, "certificado")
        if not certificate:
            return
        person = sub_document(doc, "persona")

        record = CareerRecord(
            driver_id=driver_id,
            folio=text(certificate.get("folio")),
            verification_code=text(certificate.get("codigoVerificacion")),
            issued_on=parse_flexible_date(certificate.get("fechaEmision")),
            comuna=text(person.get("comuna")),
            address=text(person.get("domicilio")),
        )

        # License restrictions and restricted durations share one table
        restrictions = (
            [(e, "bloqueRestriccionLicencia") for e in entries(person, "restriccionesLicencia")]
            + [(e, "bloqueDuracionRestringida") for e in entries(person, "duracionesRestringidas")]
        )
        for pos, (item, field) in enumerate(restrictions, start=1):
            record.restrictions.append(CareerRestriction(
                position=pos,
                noted_on=parse_flexible_date(item.get("fechaAnotacion")),
                restriction=text(item.get(field)),
            ))

        for pos, item in enumerate(entries(person, "infraccionesRegistradas"), start=1):
            record.infractions.append(CareerInfraction(
                position=pos,
                case_number=text(item.get("procesoNumero")),
                court=text(item.get("tribunal")),
                reported_on=parse_flexible_date(item.get("fechaDenuncia")),
                infraction=text(item.get("infraccion")),
                resolution=text(item.get("resolucion")),
                report_number=text(item.get("nroParte")),
                year=text(item.get("año")),
                police_unit=text(item.get("upolicial")),
                vehicle=text(item.get("vehiculo")),
                resolved_on=parse_flexible_date(item.get("fechaResolucion")),
            ))

        session.add(record)
        session.flush()

    def _add_license(self, session: Session, driver_id: int, front: dict, back: dict) -> None:
        lic = License(
            driver_id=driver_id,
            municipality=text(front.get("municipalidad")),
            control_date=parse_flexible_date(front.get("fecha_de_control")),
            last_control_date=parse_flexible_date(front.get("fecha_ultimo_control")),
            code=text(back.get("codigo")),
            restrictions=text(back.get("restricciones")),
        )
        session.add(lic)
        session.flush()

        labels = front.get("clase") or []
        if isinstance(labels, str):
            labels = [labels]
        if not isinstance(labels, list):
            raise RowError("'clase' must be a list of license classes")

        seen: set[str] = set()
        for label in labels:
            label = normalize_text(label) if isinstance(label, str) else text(label)
            if not label or label in seen:
                continue
            seen.add(label)
            class_id = resolve(session, self.license_classes, label)
            session.execute(
                insert(license_class_link).values(
                    license_id=lic.license_id, license_class_id=class_id,
                )
            )
