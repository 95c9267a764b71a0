"""
db.models - SQLAlchemy ORM declarations.

Tables
------
Catalogs      carrier_type, driver_role, license_class, vehicle_type,
              vehicle_designation, vehicle_brand - one row per distinct
              label, label column UNIQUE.
vehicle_model compound catalog keyed by (brand, model name).
carrier       natural key carrier_rut; carrier_bp is the correlation key
              used by driver and vehicle files.
driver        natural key driver_rut.  Owns career records and licenses.
vehicle       natural key registration_plate.  Owns inspections, permits,
              insurance policies and ownership certificates.

Child tables are append-only: every import of a parent adds a new
snapshot row instead of replacing the previous one.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, Date, DateTime, Text,
    ForeignKey, Table, UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


# ── Catalogs ───────────────────────────────────────────────────────────

class CarrierType(Base):
    __tablename__ = "carrier_type"

    carrier_type_id = Column(Integer, primary_key=True, autoincrement=True)
    carrier_type    = Column(String(200), unique=True, nullable=False)


class DriverRole(Base):
    __tablename__ = "driver_role"

    driver_role_id = Column(Integer, primary_key=True, autoincrement=True)
    driver_role    = Column(String(200), unique=True, nullable=False)


class LicenseClass(Base):
    __tablename__ = "license_class"

    license_class_id = Column(Integer, primary_key=True, autoincrement=True)
    license_class    = Column(String(50), unique=True, nullable=False)


class VehicleType(Base):
    __tablename__ = "vehicle_type"

    vehicle_type_id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_type    = Column(String(200), unique=True, nullable=False)


class VehicleDesignation(Base):
    __tablename__ = "vehicle_designation"

    vehicle_designation_id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_designation    = Column(String(200), unique=True, nullable=False)


class VehicleBrand(Base):
    __tablename__ = "vehicle_brand"

    vehicle_brand_id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_brand    = Column(String(200), unique=True, nullable=False)

    models = relationship("VehicleModel", back_populates="brand")


class VehicleModel(Base):
    __tablename__ = "vehicle_model"

    vehicle_model_id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_brand_id = Column(Integer, ForeignKey("vehicle_brand.vehicle_brand_id"),
                              nullable=False, index=True)
    vehicle_model    = Column(String(200), nullable=False)

    brand = relationship("VehicleBrand", back_populates="models")

    __table_args__ = (
        UniqueConstraint("vehicle_brand_id", "vehicle_model", name="uq_vehicle_model_brand"),
    )


# ── Carrier ────────────────────────────────────────────────────────────

class Carrier(Base):
    __tablename__ = "carrier"

    carrier_id      = Column(Integer, primary_key=True, autoincrement=True)
    carrier_rut     = Column(String(12), unique=True, nullable=False)
    carrier_name    = Column(String(300), nullable=False)
    carrier_bp      = Column(String(50), index=True)
    carrier_type_id = Column(Integer, ForeignKey("carrier_type.carrier_type_id"),
                             nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    carrier_type = relationship("CarrierType")


# ── Driver ─────────────────────────────────────────────────────────────

license_class_link = Table(
    "license_class_link",
    Base.metadata,
    Column("license_id", Integer,
           ForeignKey("license.license_id", ondelete="CASCADE"), primary_key=True),
    Column("license_class_id", Integer,
           ForeignKey("license_class.license_class_id"), primary_key=True),
)


class Driver(Base):
    __tablename__ = "driver"

    driver_id      = Column(Integer, primary_key=True, autoincrement=True)
    driver_rut     = Column(String(12), unique=True, nullable=False)
    carrier_id     = Column(Integer, ForeignKey("carrier.carrier_id"), nullable=False, index=True)
    driver_role_id = Column(Integer, ForeignKey("driver_role.driver_role_id"), nullable=False)
    driver_name    = Column(String(300))
    birth_date     = Column(Date)
    phone_number   = Column(String(50))
    email          = Column(String(300))

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    carrier = relationship("Carrier")
    role    = relationship("DriverRole")
    career_records = relationship(
        "CareerRecord", back_populates="driver",
        cascade="all, delete-orphan", order_by="CareerRecord.career_record_id",
    )
    licenses = relationship(
        "License", back_populates="driver",
        cascade="all, delete-orphan", order_by="License.license_id",
    )


class CareerRecord(Base):
    """Driver record certificate (hoja de vida)."""
    __tablename__ = "career_record"

    career_record_id  = Column(Integer, primary_key=True, autoincrement=True)
    driver_id         = Column(Integer, ForeignKey("driver.driver_id", ondelete="CASCADE"),
                               nullable=False, index=True)
    folio             = Column(String(100))
    verification_code = Column(String(100))
    issued_on         = Column(Date)
    comuna            = Column(String(200))
    address           = Column(String(500))
    created_at        = Column(DateTime, default=utcnow)

    driver = relationship("Driver", back_populates="career_records")
    restrictions = relationship(
        "CareerRestriction", back_populates="career_record",
        cascade="all, delete-orphan", order_by="CareerRestriction.position",
    )
    infractions = relationship(
        "CareerInfraction", back_populates="career_record",
        cascade="all, delete-orphan", order_by="CareerInfraction.position",
    )


class CareerRestriction(Base):
    __tablename__ = "career_restriction"

    career_restriction_id = Column(Integer, primary_key=True, autoincrement=True)
    career_record_id      = Column(Integer,
                                   ForeignKey("career_record.career_record_id", ondelete="CASCADE"),
                                   nullable=False, index=True)
    position    = Column(Integer, nullable=False)
    noted_on    = Column(Date)
    restriction = Column(Text)

    career_record = relationship("CareerRecord", back_populates="restrictions")


class CareerInfraction(Base):
    __tablename__ = "career_infraction"

    career_infraction_id = Column(Integer, primary_key=True, autoincrement=True)
    career_record_id     = Column(Integer,
                                  ForeignKey("career_record.career_record_id", ondelete="CASCADE"),
                                  nullable=False, index=True)
    position      = Column(Integer, nullable=False)
    case_number   = Column(String(100))
    court         = Column(String(300))
    reported_on   = Column(Date)
    infraction    = Column(Text)
    resolution    = Column(Text)
    report_number = Column(String(100))
    year          = Column(String(10))
    police_unit   = Column(String(300))
    vehicle       = Column(String(100))
    resolved_on   = Column(Date)

    career_record = relationship("CareerRecord", back_populates="infractions")


class License(Base):
    __tablename__ = "license"

    license_id        = Column(Integer, primary_key=True, autoincrement=True)
    driver_id         = Column(Integer, ForeignKey("driver.driver_id", ondelete="CASCADE"),
                               nullable=False, index=True)
    municipality      = Column(String(200))
    control_date      = Column(Date)
    last_control_date = Column(Date)
    code              = Column(String(100))
    restrictions      = Column(Text)
    created_at        = Column(DateTime, default=utcnow)

    driver  = relationship("Driver", back_populates="licenses")
    classes = relationship("LicenseClass", secondary=license_class_link)


# ── Vehicle ────────────────────────────────────────────────────────────

class Vehicle(Base):
    __tablename__ = "vehicle"

    vehicle_id         = Column(Integer, primary_key=True, autoincrement=True)
    registration_plate = Column(String(20), unique=True, nullable=False)
    year_of_manufacture = Column(Integer)
    gps                = Column(Boolean, default=False)
    engine_number      = Column(String(100))
    chassis_number     = Column(String(100))
    vin                = Column(String(100))
    odometer_km        = Column(Integer)
    curtain            = Column(String(100))
    curtain_installed_on = Column(Date)
    grille             = Column(Boolean, default=False)
    weight             = Column(Float)
    length             = Column(Float)
    width              = Column(Float)
    height             = Column(Float)
    mop_classification = Column(String(100))
    nominal_pallets    = Column(Integer)

    # ── Foreign keys ───────────────────────────────────────────────────
    vehicle_type_id        = Column(Integer, ForeignKey("vehicle_type.vehicle_type_id"))
    vehicle_designation_id = Column(Integer,
                                    ForeignKey("vehicle_designation.vehicle_designation_id"))
    vehicle_model_id       = Column(Integer, ForeignKey("vehicle_model.vehicle_model_id"))
    carrier_id             = Column(Integer, ForeignKey("carrier.carrier_id"),
                                    nullable=False, index=True)  # immutable after insert

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    carrier = relationship("Carrier")
    model   = relationship("VehicleModel")
    inspections = relationship(
        "TechnicalInspection", back_populates="vehicle",
        cascade="all, delete-orphan", order_by="TechnicalInspection.technical_inspection_id",
    )
    circulation_permits = relationship(
        "CirculationPermit", back_populates="vehicle", cascade="all, delete-orphan",
    )
    insurances = relationship(
        "Insurance", back_populates="vehicle", cascade="all, delete-orphan",
    )
    ownership_certificates = relationship(
        "OwnershipCertificate", back_populates="vehicle", cascade="all, delete-orphan",
    )


INSPECTION_STATUS_FIELDS = (
    "emissions_crt_status",
    "identification_status",
    "visual_status",
    "lights_status",
    "alignment_status",
    "brakes_status",
    "clearances_status",
    "emissions_status",
    "opacity_status",
    "steering_angle_status",
    "noise_status",
    "suspension_status",
)


class TechnicalInspection(Base):
    __tablename__ = "technical_inspection"

    technical_inspection_id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id   = Column(Integer, ForeignKey("vehicle.vehicle_id", ondelete="CASCADE"),
                          nullable=False, index=True)
    inspected_on = Column(Date)
    expires_on   = Column(Date)

    emissions_crt_status  = Column(Boolean, nullable=False, default=False)
    identification_status = Column(Boolean, nullable=False, default=False)
    visual_status         = Column(Boolean, nullable=False, default=False)
    lights_status         = Column(Boolean, nullable=False, default=False)
    alignment_status      = Column(Boolean, nullable=False, default=False)
    brakes_status         = Column(Boolean, nullable=False, default=False)
    clearances_status     = Column(Boolean, nullable=False, default=False)
    emissions_status      = Column(Boolean, nullable=False, default=False)
    opacity_status        = Column(Boolean, nullable=False, default=False)
    steering_angle_status = Column(Boolean, nullable=False, default=False)
    noise_status          = Column(Boolean, nullable=False, default=False)
    suspension_status     = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow)

    vehicle = relationship("Vehicle", back_populates="inspections")


class CirculationPermit(Base):
    __tablename__ = "circulation_permit"

    circulation_permit_id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id   = Column(Integer, ForeignKey("vehicle.vehicle_id", ondelete="CASCADE"),
                          nullable=False, index=True)
    municipality = Column(String(200))
    issued_on    = Column(Date)
    expires_on   = Column(Date)
    created_at   = Column(DateTime, default=utcnow)

    vehicle = relationship("Vehicle", back_populates="circulation_permits")


class Insurance(Base):
    """Mandatory accident insurance (SOAP) policy."""
    __tablename__ = "insurance"

    insurance_id      = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id        = Column(Integer, ForeignKey("vehicle.vehicle_id", ondelete="CASCADE"),
                               nullable=False, index=True)
    policy_number     = Column(String(100))
    insurer           = Column(String(300))
    policy_expires_on = Column(Date)
    created_at        = Column(DateTime, default=utcnow)

    vehicle = relationship("Vehicle", back_populates="insurances")


class OwnershipCertificate(Base):
    """Certificate of current registry annotations (owner + encumbrances)."""
    __tablename__ = "ownership_certificate"

    ownership_certificate_id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id         = Column(Integer, ForeignKey("vehicle.vehicle_id", ondelete="CASCADE"),
                                nullable=False, index=True)
    folio              = Column(String(100))
    verification_code  = Column(String(100))
    issued_on          = Column(Date)
    domain_limitations = Column(Text)
    owner_name         = Column(String(300))
    owner_rut          = Column(String(20))
    acquired_on        = Column(Date)
    created_at         = Column(DateTime, default=utcnow)

    vehicle = relationship("Vehicle", back_populates="ownership_certificates")
