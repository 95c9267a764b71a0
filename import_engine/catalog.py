"""
import_engine.catalog - Run-scoped catalog caches with race-safe creation.

A catalog maps a free-text label to a surrogate id (carrier type,
driver role, license class, vehicle type / designation / brand).  Each
import run owns its caches: they are preloaded with one bulk read,
consulted before storage, and written only by resolve().

Misses go to storage as a single INSERT … ON CONFLICT (label) DO UPDATE
… RETURNING id, so two runs creating the same new label converge on one
row regardless of what either cache holds.

Ids obtained inside a row transaction stay *pending* until the
orchestrator reports the outcome: commit_pending() after COMMIT,
discard_pending() after ROLLBACK.  A rolled-back insert therefore never
leaves a dangling id in the cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import (
    Carrier, CarrierType, DriverRole, LicenseClass,
    VehicleType, VehicleDesignation, VehicleBrand, VehicleModel,
)
from db.upsert import upsert
from import_engine.errors import RowError, StructuralInputError
from normalize import normalize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogDef:
    model: type
    label_column: str
    id_column: str

    @property
    def name(self) -> str:
        return self.model.__tablename__


CARRIER_TYPE        = CatalogDef(CarrierType, "carrier_type", "carrier_type_id")
DRIVER_ROLE         = CatalogDef(DriverRole, "driver_role", "driver_role_id")
LICENSE_CLASS       = CatalogDef(LicenseClass, "license_class", "license_class_id")
VEHICLE_TYPE        = CatalogDef(VehicleType, "vehicle_type", "vehicle_type_id")
VEHICLE_DESIGNATION = CatalogDef(VehicleDesignation, "vehicle_designation",
                                  "vehicle_designation_id")
VEHICLE_BRAND       = CatalogDef(VehicleBrand, "vehicle_brand", "vehicle_brand_id")


class CatalogCache:
    """
    label → id for one catalog.  Committed entries and entries created
    by the current (still open) row transaction are kept apart.
    """

    def __init__(self, name: str):
        self.name = name
        self._ids: dict[Hashable, int] = {}
        self._pending: dict[Hashable, int] = {}

    def get(self, key: Hashable) -> Optional[int]:
        if key in self._pending:
            return self._pending[key]
        return self._ids.get(key)

    def put(self, key: Hashable, ident: int) -> None:
        self._pending[key] = ident

    def load(self, pairs) -> int:
        self._ids = {k: i for k, i in pairs}
        self._pending.clear()
        logger.info("Cache '%s' loaded with %d entries", self.name, len(self._ids))
        return len(self._ids)

    def commit_pending(self) -> None:
        self._ids.update(self._pending)
        self._pending.clear()

    def discard_pending(self) -> None:
        if self._pending:
            logger.debug("Cache '%s': discarding %d rolled-back entries",
                         self.name, len(self._pending))
        self._pending.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._ids) + len(self._pending)


class Catalog(CatalogCache):
    """Cache bound to a simple label catalog."""

    def __init__(self, definition: CatalogDef):
        super().__init__(definition.name)
        self.definition = definition

    def preload(self, session: Session) -> int:
        model = self.definition.model
        stmt = select(getattr(model, self.definition.label_column),
                      getattr(model, self.definition.id_column))
        return self.load(session.execute(stmt).all())


class ModelCatalog(CatalogCache):
    """Vehicle models keyed by (brand label, model label)."""

    def __init__(self):
        super().__init__(VehicleModel.__tablename__)

    def preload(self, session: Session) -> int:
        stmt = (
            select(VehicleBrand.vehicle_brand, VehicleModel.vehicle_model,
                   VehicleModel.vehicle_model_id)
            .join(VehicleBrand, VehicleModel.vehicle_brand_id == VehicleBrand.vehicle_brand_id)
        )
        return self.load(((b, m), i) for b, m, i in session.execute(stmt).all())


def resolve(session: Session, catalog: Catalog, label) -> int:
    """
    Id for `label` in `catalog`, creating the catalog row if needed.

    Cache hit → no storage access.  Miss → one race-safe insert-or-fetch.
    """
    label = normalize_text(label)
    if not label:
        raise RowError(f"Empty value for catalog '{catalog.name}'", StructuralInputError)

    ident = catalog.get(label)
    if ident is not None:
        return ident

    definition = catalog.definition
    logger.info("Creating %s: '%s'", definition.name, label)
    ident = upsert(
        session, definition.model, {definition.label_column: label},
        conflict=(definition.label_column,),
        returning=definition.id_column,
    )
    catalog.put(label, ident)
    return ident


def resolve_model(
    session: Session,
    models: ModelCatalog,
    brand_id: int,
    brand_label: str,
    model_label,
) -> int:
    """
    Id of the (brand, model) pair, created lazily.  Needs the brand's
    resolved id, which is why models are not a simple catalog.
    """
    model_label = normalize_text(model_label)
    if not model_label:
        raise RowError("Empty vehicle model", StructuralInputError)

    key = (brand_label, model_label)
    ident = models.get(key)
    if ident is not None:
        return ident

    logger.info("Creating vehicle_model: '%s' for brand '%s'", model_label, brand_label)
    ident = upsert(
        session, VehicleModel,
        {"vehicle_brand_id": brand_id, "vehicle_model": model_label},
        conflict=("vehicle_brand_id", "vehicle_model"),
        returning="vehicle_model_id",
    )
    models.put(key, ident)
    return ident


class CarrierDirectory(CatalogCache):
    """
    carrier_bp → carrier_id.  Read-only: carriers are only created by
    the carrier importer.  A miss falls back to one storage read so a
    run sees carriers committed after its preload.
    """

    def __init__(self):
        super().__init__(Carrier.__tablename__)

    def preload(self, session: Session) -> int:
        stmt = (
            select(Carrier.carrier_bp, Carrier.carrier_id)
            .where(Carrier.carrier_bp.is_not(None))
            .order_by(Carrier.carrier_id)
        )
        return self.load(session.execute(stmt).all())

    def lookup(self, session: Session, carrier_bp: Optional[str]) -> Optional[int]:
        if not carrier_bp:
            return None
        ident = self.get(carrier_bp)
        if ident is not None:
            return ident
        ident = session.execute(
            select(Carrier.carrier_id)
            .where(Carrier.carrier_bp == carrier_bp)
            .order_by(Carrier.carrier_id.desc())
            .limit(1)
        ).scalar()
        if ident is not None:
            self._ids[carrier_bp] = ident
        return ident
