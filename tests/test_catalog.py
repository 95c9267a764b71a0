import pytest
from sqlalchemy import func, select

from db.models import CarrierType, VehicleModel
from import_engine.catalog import (
    CARRIER_TYPE, VEHICLE_BRAND, Catalog, CarrierDirectory, ModelCatalog,
    resolve, resolve_model,
)
from import_engine.errors import RowError, StructuralInputError
from tests.factories import CarrierFactory, CarrierTypeFactory
from tests.helpers import fetch_scalar


def _inserts(statements, table):
    return [s for s in statements if s.lstrip().upper().startswith(f"INSERT INTO {table.upper()}")]


def test_preload_reads_existing_labels(database, factories):
    existing = CarrierTypeFactory(carrier_type="Propio")
    catalog = Catalog(CARRIER_TYPE)
    with database.scoped_session() as session:
        assert catalog.preload(session) == 1
    assert catalog.get("Propio") == existing.carrier_type_id


def test_cache_hit_issues_no_insert(database, statements):
    """A label resolved once is served from the cache afterwards."""
    catalog = Catalog(CARRIER_TYPE)
    with database.scoped_session() as session:
        catalog.preload(session)
        first = resolve(session, catalog, "Subcontratista")
        session.commit()
        catalog.commit_pending()

        second = resolve(session, catalog, "  Subcontratista ")
        assert second == first
    assert len(_inserts(statements, "carrier_type")) == 1


def test_stale_caches_converge_on_one_row(database):
    """Two runs that both miss create the label once and share its id."""
    run_a, run_b = Catalog(CARRIER_TYPE), Catalog(CARRIER_TYPE)
    with database.scoped_session() as session:
        run_a.preload(session)
        run_b.preload(session)
        session.commit()

    with database.scoped_session() as session:
        id_a = resolve(session, run_a, "Externo")
        session.commit()
    with database.scoped_session() as session:
        id_b = resolve(session, run_b, "Externo")
        session.commit()

    assert id_a == id_b
    count = fetch_scalar(database, select(func.count()).select_from(CarrierType)
                         .where(CarrierType.carrier_type == "Externo"))
    assert count == 1


def test_rolled_back_entry_is_discarded(database):
    catalog = Catalog(CARRIER_TYPE)
    with database.scoped_session() as session:
        catalog.preload(session)
        session.commit()

        session.begin()
        resolve(session, catalog, "Temporal")
        assert "Temporal" in catalog
        session.rollback()
        catalog.discard_pending()

        assert "Temporal" not in catalog
        assert len(catalog) == 0

    assert fetch_scalar(database, select(func.count()).select_from(CarrierType)) == 0


def test_resolve_rejects_blank_label(database):
    catalog = Catalog(CARRIER_TYPE)
    with database.scoped_session() as session:
        with pytest.raises(RowError) as exc_info:
            resolve(session, catalog, "   ")
    assert exc_info.value.kind is StructuralInputError


def test_model_catalog_is_scoped_by_brand(database):
    brands, models = Catalog(VEHICLE_BRAND), ModelCatalog()
    with database.scoped_session() as session:
        volvo = resolve(session, brands, "Volvo")
        scania = resolve(session, brands, "Scania")
        a = resolve_model(session, models, volvo, "Volvo", "FH")
        b = resolve_model(session, models, scania, "Scania", "FH")
        again = resolve_model(session, models, volvo, "Volvo", "FH")
        session.commit()

    assert a != b
    assert again == a
    assert fetch_scalar(database, select(func.count()).select_from(VehicleModel)) == 2

    fresh = ModelCatalog()
    with database.scoped_session() as session:
        assert fresh.preload(session) == 2
    assert fresh.get(("Volvo", "FH")) == a


def test_carrier_directory_falls_back_to_storage(database, factories):
    directory = CarrierDirectory()
    with database.scoped_session() as session:
        directory.preload(session)
        session.commit()

        carrier = CarrierFactory(carrier_bp="BP-LATE")
        assert directory.lookup(session, "BP-LATE") == carrier.carrier_id
        assert directory.lookup(session, "BP-MISSING") is None
        assert directory.lookup(session, None) is None
