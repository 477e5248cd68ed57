"""DepositLens — Bank Marketing CSV Loader.

Validates the header row against the field registry, streams typed rows,
and writes them into the immutable `bank_marketing_raw` staging table.
"""

import csv
from pathlib import Path
from typing import IO, Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import func
from sqlmodel import Session, select

from depositlens.config import settings
from depositlens.core.errors import (
    RawDataAlreadyLoadedError,
    RawRowError,
    RawSchemaError,
)
from depositlens.core.field_registry import (
    FIELDS_BY_HEADER,
    RAW_HEADERS,
    FieldDefinition,
)
from depositlens.core.logging import get_logger
from depositlens.models.raw_models import RawEvent

logger = get_logger("bank_marketing.loader")

SNIFF_DELIMITERS = ",;"


def _sanitize_header(header: Optional[str]) -> str:
    token = (header or "").lstrip("\ufeff").strip().strip('"').strip()
    return token.lower()


def _validate_headers(raw_headers: Sequence[str]) -> List[str]:
    """Return the sanitized header list, or raise RawSchemaError."""
    headers = [_sanitize_header(h) for h in raw_headers]
    seen: set[str] = set()
    duplicates: List[str] = []
    unexpected: List[str] = []

    for header in headers:
        if header not in FIELDS_BY_HEADER:
            unexpected.append(header or "<blank>")
            continue
        if header in seen:
            duplicates.append(header)
        seen.add(header)

    missing = [h for h in RAW_HEADERS if h not in seen]
    if missing or unexpected or duplicates:
        raise RawSchemaError(
            missing=missing, unexpected=unexpected, duplicates=duplicates
        )
    return headers


def _coerce(value: Optional[str], field: FieldDefinition, row_number: int) -> Any:
    """Strip, map empty to None, cast int columns, enforce allowed values."""
    header = field.header
    value = (value or "").strip()
    if field.allowed_values and value not in field.allowed_values:
        raise RawRowError(
            row_number,
            f"column '{header}' must be one of {', '.join(field.allowed_values)}, "
            f"got {value!r}",
        )
    if value == "":
        return None
    if field.python_type is int:
        try:
            return int(value)
        except ValueError:
            raise RawRowError(
                row_number, f"column '{header}' expects an integer, got {value!r}"
            ) from None
    return value


def _detect_delimiter(first_line: str) -> str:
    try:
        return csv.Sniffer().sniff(first_line, delimiters=SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return ","


def read_raw_events(
    file_obj: IO[str], delimiter: Optional[str] = None
) -> Iterator[Dict[str, Any]]:
    """Yield one attribute dict per data row.

    The header is validated before the first row is produced, so a schema
    mismatch fails before anything is written. Blank lines are skipped.
    """
    if delimiter is None:
        delimiter = settings.csv_delimiter or None
    if delimiter is None:
        first_line = file_obj.readline()
        delimiter = _detect_delimiter(first_line)
        lines: Any = _prepend(first_line, file_obj)
    else:
        lines = file_obj

    reader = csv.reader(lines, delimiter=delimiter)
    header_row = next(reader, None)
    if header_row is None:
        raise RawSchemaError(missing=list(RAW_HEADERS))
    headers = _validate_headers(header_row)
    width = len(headers)

    for row_number, values in enumerate(reader, start=2):
        if all(v.strip() == "" for v in values):
            continue
        if len(values) != width:
            raise RawRowError(
                row_number, f"expected {width} values, found {len(values)}"
            )
        record: Dict[str, Any] = {}
        for header, value in zip(headers, values):
            field = FIELDS_BY_HEADER[header]
            record[field.name] = _coerce(value, field, row_number)
        yield record


def _prepend(first_line: str, rest: IO[str]) -> Iterator[str]:
    yield first_line
    yield from rest


def load_raw_events(session: Session, rows: Iterator[Dict[str, Any]]) -> int:
    """Insert rows into `bank_marketing_raw`, assigning event ids 1..N in order.

    The staging table is write-once: loading into a populated table raises
    RawDataAlreadyLoadedError.
    """
    existing = session.exec(select(func.count()).select_from(RawEvent)).one()
    if existing:
        raise RawDataAlreadyLoadedError(
            f"bank_marketing_raw already holds {existing} rows"
        )

    count = 0
    for event_id, record in enumerate(rows, start=1):
        session.add(RawEvent(id=event_id, **record))
        count = event_id
    session.flush()

    logger.info(
        f"Loaded {count} raw events",
        extra={"table": RawEvent.__tablename__, "row_count": count},
    )
    return count


def load_csv(
    session: Session, path: str | Path, delimiter: Optional[str] = None
) -> int:
    """Read a bank marketing CSV file and load it into the staging table."""
    path = Path(path)
    logger.info(f"Reading raw events from {path}")
    with path.open("r", encoding="utf-8", newline="") as fh:
        return load_raw_events(session, read_raw_events(fh, delimiter=delimiter))
