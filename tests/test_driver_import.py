from datetime import date

from sqlalchemy import func, select

from db.models import (
    CareerInfraction, CareerRecord, CareerRestriction, Driver, DriverRole,
    License, LicenseClass, license_class_link,
)
from import_engine import run_import
from tests.factories import CarrierFactory
from tests.helpers import fetch_all, fetch_scalar, make_csv

CAREER = {
    "certificado": {
        "folio": "F-2231",
        "codigoVerificacion": "a1b2c3",
        "fechaEmision": "24-06-2025, 09:21",
    },
    "persona": {
        "comuna": "Maipú",
        "domicilio": "Av. Pajaritos 1200",
        "restriccionesLicencia": [
            {"fechaAnotacion": "01-03-2020", "bloqueRestriccionLicencia": "Usar lentes"},
        ],
        "duracionesRestringidas": [
            {"fechaAnotacion": "15/07/2021", "bloqueDuracionRestringida": "Control en 2 años"},
        ],
        "infraccionesRegistradas": [
            {"procesoNumero": "4411-2022", "tribunal": "1er JPL Maipú",
             "fechaDenuncia": "2022-03-10", "infraccion": "Exceso de velocidad",
             "año": 2022, "upolicial": "26a Comisaría"},
            {"procesoNumero": "9-2023", "tribunal": "2do JPL", "infraccion": "Luces"},
        ],
    },
}

LICENSE_FRONT = {
    "municipalidad": "Providencia",
    "fecha_de_control": "12-05-2027",
    "fecha_ultimo_control": "12-05-2021",
    "clase": ["A2", "B", " A2 "],
}
LICENSE_BACK = {"codigo": "LX-99", "restricciones": "Sin restricciones"}


def _row(**overrides):
    row = {
        "carrier_bp": "BP100",
        "national_id": "12.345.678-5",
        "driver_role": "Conductor",
        "driver_name": "Juan  Pérez",
        "birth_date": "03/02/1985",
        "phone_number": "+56911112222",
        "email": "jperez@example.cl",
        "hoja_de_vida_data": "",
        "licencia_frontal_data": "",
        "licencia_reverso_data": "",
    }
    row.update(overrides)
    return row


def test_driver_with_career_record_and_license(database, factories):
    carrier = CarrierFactory(carrier_bp="BP100")

    report = run_import(database, "driver", make_csv([_row(
        hoja_de_vida_data=CAREER,
        licencia_frontal_data=LICENSE_FRONT,
        licencia_reverso_data=LICENSE_BACK,
    )]))

    assert report.ok and report.committed == 1, report.errors
    drivers = fetch_all(database, select(Driver.driver_rut, Driver.carrier_id,
                                         Driver.driver_name, Driver.birth_date))
    assert drivers == [("12345678-5", carrier.carrier_id, "Juan Pérez", date(1985, 2, 3))]

    records = fetch_all(database, select(CareerRecord.folio, CareerRecord.issued_on,
                                         CareerRecord.comuna))
    assert records == [("F-2231", date(2025, 6, 24), "Maipú")]

    restrictions = fetch_all(database, select(CareerRestriction.position,
                                              CareerRestriction.restriction,
                                              CareerRestriction.noted_on)
                             .order_by(CareerRestriction.position))
    assert restrictions == [
        (1, "Usar lentes", date(2020, 3, 1)),
        (2, "Control en 2 años", date(2021, 7, 15)),
    ]

    infractions = fetch_all(database, select(CareerInfraction.position,
                                             CareerInfraction.case_number,
                                             CareerInfraction.year,
                                             CareerInfraction.reported_on)
                            .order_by(CareerInfraction.position))
    assert infractions == [
        (1, "4411-2022", "2022", date(2022, 3, 10)),
        (2, "9-2023", None, None),
    ]

    licenses = fetch_all(database, select(License.municipality, License.code,
                                          License.control_date))
    assert licenses == [("Providencia", "LX-99", date(2027, 5, 12))]
    classes = [r[0] for r in fetch_all(
        database,
        select(LicenseClass.license_class)
        .join(license_class_link)
        .order_by(LicenseClass.license_class),
    )]
    assert classes == ["A2", "B"]


def test_driver_reimport_upserts_and_appends_children(database, factories):
    CarrierFactory(carrier_bp="BP100")
    data = make_csv([_row(hoja_de_vida_data=CAREER)])

    run_import(database, "driver", data)
    report = run_import(database, "driver", make_csv([
        _row(hoja_de_vida_data=CAREER, driver_name="Juan Pérez Soto"),
    ]))

    assert report.committed == 1
    assert fetch_all(database, select(Driver.driver_name)) == [("Juan Pérez Soto",)]
    assert fetch_scalar(database, select(func.count()).select_from(CareerRecord)) == 2
    assert fetch_scalar(database, select(func.count()).select_from(DriverRole)) == 1


def test_unknown_carrier_is_referential_error(database, factories):
    CarrierFactory(carrier_bp="BP100")

    report = run_import(database, "driver", make_csv([
        _row(carrier_bp="BP-NOPE"),
        _row(national_id="11111111-1"),
    ]))

    assert report.committed == 1
    assert report.errors == [{
        "row": 2,
        "key": "12345678-5",
        "kind": "ReferentialError",
        "reason": "Carrier with carrier_bp 'BP-NOPE' not found",
    }]
    # Only the second driver was written
    assert fetch_all(database, select(Driver.driver_rut)) == [("11111111-1",)]


def test_rejected_row_leaves_no_catalog_entries(database, factories):
    """A role created by a row that later fails is rolled back with it."""
    CarrierFactory(carrier_bp="BP100")

    report = run_import(database, "driver", make_csv([
        _row(driver_role="Peoneta", licencia_frontal_data={**LICENSE_FRONT, "clase": {"x": 1}},
             licencia_reverso_data=LICENSE_BACK),
        _row(national_id="11111111-1"),
    ]))

    assert report.committed == 1
    assert report.errors[0]["kind"] == "StructuralInputError"
    assert fetch_scalar(database, select(func.count()).select_from(Driver)) == 1
    assert fetch_scalar(database, select(func.count()).select_from(License)) == 0
    assert fetch_all(database, select(DriverRole.driver_role)) == [("Conductor",)]


def test_license_needs_both_sides(database, factories):
    CarrierFactory(carrier_bp="BP100")

    report = run_import(database, "driver", make_csv([
        _row(licencia_frontal_data=LICENSE_FRONT),
    ]))

    assert report.committed == 1
    assert fetch_scalar(database, select(func.count()).select_from(License)) == 0


def test_invalid_json_document_rejects_row(database, factories):
    CarrierFactory(carrier_bp="BP100")

    report = run_import(database, "driver", make_csv([
        _row(hoja_de_vida_data="{not json"),
    ]))

    assert report.committed == 0
    assert report.errors[0]["kind"] == "StructuralInputError"
    assert "hoja_de_vida_data" in report.errors[0]["reason"]
    assert fetch_scalar(database, select(func.count()).select_from(Driver)) == 0


def test_missing_role_and_bad_rut(database, factories):
    CarrierFactory(carrier_bp="BP100")

    report = run_import(database, "driver", make_csv([
        _row(driver_role=""),
        _row(national_id="12.345.678-9"),
    ]))

    assert report.committed == 0
    assert [e["kind"] for e in report.errors] == ["StructuralInputError"] * 2


def test_blank_carrier_bp_is_structural(database, factories):
    CarrierFactory(carrier_bp="BP100")

    report = run_import(database, "driver", make_csv([_row(carrier_bp="  ")]))

    assert report.committed == 0
    assert report.errors[0]["kind"] == "StructuralInputError"
    assert "carrier_bp" in report.errors[0]["reason"]
