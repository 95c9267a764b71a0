import io

import pytest

from main import create_app
from services import LocalObjectStore
from tests.factories import make_rut
from tests.helpers import make_csv

BUCKET = "fleet-ingest"


@pytest.fixture
def store(tmp_path):
    return LocalObjectStore(tmp_path / "store")


@pytest.fixture
def client(store):
    """Flask test client backed by an in-memory database."""
    app = create_app("sqlite://", store=store)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def _carrier_csv(n=1):
    return make_csv([{
        "carrier_type": "Propio",
        "carrier_name": f"Carrier {i}",
        "carrier_tin": make_rut(60000000 + i),
        "carrier_bp": f"BP{i}",
    } for i in range(n)])


def test_health_ok(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}


def test_import_raw_body(client):
    response = client.post("/api/v1/import/carrier", data=_carrier_csv(2),
                           content_type="text/csv")

    assert response.status_code == 200
    body = response.get_json()
    assert body["committed"] == 2
    assert body["entity"] == "carrier"


def test_import_multipart(client):
    response = client.post(
        "/api/v1/import/carrier",
        data={"csv_file": (io.BytesIO(_carrier_csv()), "empresas.csv")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    assert response.get_json()["file_name"] == "empresas.csv"


def test_import_unknown_entity(client):
    response = client.post("/api/v1/import/trailer", data=b"x", content_type="text/csv")
    assert response.status_code == 404


def test_import_empty_body(client):
    response = client.post("/api/v1/import/carrier", data=b"", content_type="text/csv")
    assert response.status_code == 400


def test_storage_event_imported(client, store):
    store.write(BUCKET, "ingesta_drive/empresas.csv", _carrier_csv())

    response = client.post("/api/v1/events/storage",
                           json={"bucket": BUCKET, "name": "ingesta_drive/empresas.csv"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "imported"
    assert body["report"]["committed"] == 1


def test_storage_event_ignored(client):
    response = client.post("/api/v1/events/storage",
                           json={"bucket": BUCKET, "name": "otro/archivo.csv"})

    assert response.get_json() == {"status": "ignored", "name": "otro/archivo.csv"}


def test_storage_event_bad_payload(client):
    assert client.post("/api/v1/events/storage", json=["x"]).status_code == 400
    assert client.post("/api/v1/events/storage", json={"name": "a.csv"}).status_code == 400


def test_storage_event_missing_object(client):
    response = client.post("/api/v1/events/storage",
                           json={"bucket": BUCKET, "name": "ingesta_drive/empresas.csv"})
    assert response.status_code == 404
