"""
import_engine.field_map - CSV column ↔ model attribute mapping.

Column names are those of the source spreadsheets.  Columns that need
catalog resolution, validation or JSON expansion are handled by the
entity importers and are not listed in the plain-value maps.
"""

from db.models import INSPECTION_STATUS_FIELDS

# ── Driver ─────────────────────────────────────────────────────────────
DRIVER_TEXT_FIELDS: dict[str, str] = {
    "driver_name":  "driver_name",
    "phone_number": "phone_number",
    "email":        "email",
}
DRIVER_DATE_FIELDS: dict[str, str] = {
    "birth_date": "birth_date",
}

CAREER_DOC        = "hoja_de_vida_data"
LICENSE_FRONT_DOC = "licencia_frontal_data"
LICENSE_BACK_DOC  = "licencia_reverso_data"

# ── Vehicle ────────────────────────────────────────────────────────────
VEHICLE_TEXT_FIELDS: dict[str, str] = {
    "engine_number":     "engine_number",
    "chassis_number":    "chassis_number",
    "vin":               "vin",
    "cortina":           "curtain",
    "mop_clasification": "mop_classification",
}
VEHICLE_INT_FIELDS: dict[str, str] = {
    "year_of_manufacture": "year_of_manufacture",
    "odometer_km":         "odometer_km",
    "nominal_pallet":      "nominal_pallets",
}
VEHICLE_FLOAT_FIELDS: dict[str, str] = {
    "peso":  "weight",
    "largo": "length",
    "ancho": "width",
    "alto":  "height",
}
VEHICLE_BOOL_FIELDS: dict[str, str] = {
    "gps":      "gps",
    "parrilla": "grille",
}
VEHICLE_DATE_FIELDS: dict[str, str] = {
    "instalacion_cortina": "curtain_installed_on",
}

INSPECTION_DATE_FIELDS: dict[str, str] = {
    "fecha_revision_tecnica":             "inspected_on",
    "fecha_vencimiento_revision_tecnica": "expires_on",
}
# Status columns share their name with the model attribute
INSPECTION_STATUS_COLUMNS = INSPECTION_STATUS_FIELDS

PERMIT_DOC    = "permiso_circulacion_data"
INSURANCE_DOC = "soap_data"
OWNERSHIP_DOC = "certificado_anotaciones_vigentes_data"
