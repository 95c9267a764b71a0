import io

import pytest
from sqlalchemy import func, select

from db.models import Carrier
from import_engine import run_import
from tests.factories import make_rut
from tests.helpers import fetch_all, fetch_scalar, make_csv

HEADER = "carrier_type;carrier_name;carrier_tin;carrier_bp\n"


def _carriers(n, start=0):
    return [{
        "carrier_type": "Propio",
        "carrier_name": f"Carrier {i}",
        "carrier_tin": make_rut(30000000 + i),
        "carrier_bp": f"BP{i}",
    } for i in range(start, start + n)]


class _FailingRaw(io.RawIOBase):
    """Binary source that serves one chunk, then fails like a dropped connection."""

    def __init__(self, data: bytes):
        self._chunks = [data]

    def readable(self):
        return True

    def readinto(self, buf):
        if not self._chunks:
            raise OSError("connection reset by peer")
        chunk = self._chunks.pop(0)
        buf[:len(chunk)] = chunk
        return len(chunk)


def test_failing_row_does_not_stop_the_file(database):
    rows = _carriers(5)
    rows[2]["carrier_tin"] = "12345678-0"

    report = run_import(database, "carrier", make_csv(rows), file_name="empresas.csv")

    assert report.ok
    assert (report.total_rows, report.committed, report.rejected) == (5, 4, 1)
    assert report.errors[0]["row"] == 4       # header is row 1
    assert report.errors[0]["key"] == "12345678-0"
    names = [r[0] for r in fetch_all(database, select(Carrier.carrier_name)
                                     .order_by(Carrier.carrier_id))]
    assert names == ["Carrier 0", "Carrier 1", "Carrier 3", "Carrier 4"]


def test_bom_blank_and_ragged_rows(database):
    data = (
        "\ufeff" + HEADER
        + "\n"
        + "Propio;Andes;12345678-5;BP1\n"
        + ";;;\n"
        + "Propio;Sur;11111111-1;BP2;surplus;cells\n"
        + "Propio;Norte;1000005-K\n"
    ).encode("utf-8")

    report = run_import(database, "carrier", data)

    assert report.total_rows == 3
    assert report.committed == 2
    assert report.errors[0]["key"] == "1000005-K"
    assert "carrier_bp" in report.errors[0]["reason"]
    assert fetch_all(database, select(Carrier.carrier_bp).order_by(Carrier.carrier_id)) == [
        ("BP1",), ("BP2",)]


def test_str_source_and_bom_via_helper(database):
    assert run_import(database, "carrier", make_csv(_carriers(2), bom=True)).committed == 2
    assert run_import(database, "carrier", make_csv(_carriers(1, start=5)).decode()).committed == 1


def test_empty_file_is_fatal(database):
    report = run_import(database, "carrier", b"")

    assert not report.ok
    assert report.total_rows == 0
    assert "header" in report.fatal


def test_header_only_file_imports_nothing(database):
    report = run_import(database, "carrier", HEADER.encode())

    assert report.ok
    assert report.total_rows == 0


def test_stream_failure_keeps_committed_rows(database):
    """Rows read before the source broke stay committed."""
    source = io.BufferedReader(_FailingRaw(make_csv(_carriers(3))))

    report = run_import(database, "carrier", source)

    assert not report.ok
    assert "Stream failed" in report.fatal
    assert report.committed == 3
    assert fetch_scalar(database, select(func.count()).select_from(Carrier)) == 3


def test_decode_error_midway_is_fatal(database):
    data = make_csv(_carriers(400)) + b"Propio;\xff\xfe;1000005-K;BPX\n"

    report = run_import(database, "carrier", data)

    assert not report.ok
    assert 0 < report.committed < 400
    assert fetch_scalar(database, select(func.count()).select_from(Carrier)) == report.committed


def test_unknown_entity(database):
    with pytest.raises(ValueError):
        run_import(database, "trailer", make_csv(_carriers(1)))


def test_report_to_dict(database):
    report = run_import(database, "carrier", make_csv(_carriers(1)), file_name="e.csv")

    assert report.to_dict() == {
        "entity": "carrier",
        "file_name": "e.csv",
        "total_rows": 1,
        "committed": 1,
        "rejected": 0,
        "errors": [],
        "fatal": None,
    }
