"""
db - Database layer.

Public API:
    Database        → engine/pool owner, session factory
    init_db()       → Database from config, checked and with tables created
    upsert()        → INSERT … ON CONFLICT … RETURNING
    Carrier, Driver, Vehicle, … → ORM models
"""

from db.engine import Database, init_db                      # noqa: F401
from db.upsert import upsert                                  # noqa: F401
from db.models import (                                       # noqa: F401
    Base,
    CarrierType, DriverRole, LicenseClass,
    VehicleType, VehicleDesignation, VehicleBrand, VehicleModel,
    Carrier,
    Driver, CareerRecord, CareerRestriction, CareerInfraction,
    License, license_class_link,
    Vehicle, TechnicalInspection, CirculationPermit, Insurance,
    OwnershipCertificate,
)
