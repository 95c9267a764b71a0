"""
import_engine.csv_parser - Low-level CSV reading and cleaning.

Responsibilities:
  • Streaming decode of bytes / binary streams (UTF-8, BOM tolerated)
  • ';' delimiter by default (config.CSV_DELIMITER)
  • Header whitespace stripping
  • Blank lines skipped, ragged rows tolerated: missing trailing fields
    are absent (None), surplus fields dropped
  • Cell values trimmed
"""

from __future__ import annotations

import csv
import io
from typing import IO, Iterator, Optional, Union

import config

Source = Union[str, bytes, IO[bytes], IO[str]]


def prepare_reader(
    source: Source,
    delimiter: Optional[str] = None,
) -> Optional[csv.DictReader]:
    """
    Wrap raw content (bytes, str or a file object) in a DictReader.
    Returns None if there is no header row.

    Decoding is lazy for streams: a decode error surfaces while
    iterating, not here.
    """
    text = _text_stream(source)
    reader = csv.DictReader(text, delimiter=delimiter or config.CSV_DELIMITER)
    if not reader.fieldnames:
        return None

    # Strip whitespace (and a stray BOM) from every header
    reader.fieldnames = [(h or "").strip().lstrip("\ufeff") for h in reader.fieldnames]
    return reader


def iter_rows(reader: csv.DictReader) -> Iterator[dict[str, Optional[str]]]:
    """Yield cleaned rows; rows whose cells are all empty are skipped."""
    for raw in reader:
        row: dict[str, Optional[str]] = {}
        for key, val in raw.items():
            if key is None:          # surplus cells of a ragged row
                continue
            row[key] = val.strip() if isinstance(val, str) else None
        if not any(row.values()):
            continue
        yield row


def _text_stream(source: Source) -> IO[str]:
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    if isinstance(source, str):
        return io.StringIO(source.lstrip("\ufeff"), newline="")
    if isinstance(source, io.TextIOBase):
        return source
    # utf-8-sig drops a leading BOM and is plain UTF-8 otherwise
    return io.TextIOWrapper(source, encoding="utf-8-sig", newline="")
