import csv
import io
import json


def make_csv(rows, delimiter=";", bom=False) -> bytes:
    """
    Build CSV bytes from a list of dicts (header = union of keys in
    first-seen order).  dict / list cells are JSON-encoded.
    """
    header = []
    for row in rows:
        for key in row:
            if key not in header:
                header.append(key)

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=header, delimiter=delimiter, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: json.dumps(v, ensure_ascii=False) if isinstance(v, (dict, list)) else v
                         for k, v in row.items()})
    data = buf.getvalue().encode("utf-8")
    return (b"\xef\xbb\xbf" + data) if bom else data


def fetch_all(database, stmt):
    with database.scoped_session() as session:
        return session.execute(stmt).all()


def fetch_scalar(database, stmt):
    with database.scoped_session() as session:
        return session.execute(stmt).scalar()
