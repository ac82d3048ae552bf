"""
Delimited record reading and writing.

Responsibilities:
- encoding detection (UTF-8 expected, BOM honoured, charset-normalizer fallback)
- row width enforcement (short rows padded, long rows rejected)
- header-preserving, order-preserving write back
- atomic replacement of the destination file
"""

from __future__ import annotations

import codecs
import csv
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from charset_normalizer import from_bytes

from .errors import IOFailureError, MalformedInputError
from .rules import (
    BOM_ENCODING,
    DELIMITER,
    DETECTION_SAMPLE_BYTES,
    LINE_TERMINATOR,
    QUOTECHAR,
    SOURCE_ENCODING,
    UTF8_BOM,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Record = Dict[str, str]

__all__ = ["Record", "RecordSet", "detect_encoding", "read_records", "write_records"]


@dataclass
class RecordSet:
    """Records in file order plus the header they were read with."""

    columns: List[str]
    records: List[Record] = field(default_factory=list)
    encoding: str = SOURCE_ENCODING
    source: Optional[str] = None

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def column_union(self) -> List[str]:
        """Header columns first, then any column first seen on a record."""
        seen = dict.fromkeys(self.columns)
        for record in self.records:
            for column in record:
                if column not in seen:
                    seen[column] = None
        return list(seen)


def detect_encoding(path: PathLike) -> str:
    """
    Pick the text encoding for ``path`` from its first block of bytes.

    - A UTF-8 BOM selects utf-8-sig so the BOM never leaks into the header.
    - A block that decodes as UTF-8 selects utf-8.
    - Otherwise charset-normalizer's best guess is used, falling back to utf-8.
    """
    with open(path, "rb") as fh:
        sample = fh.read(DETECTION_SAMPLE_BYTES)

    if sample.startswith(UTF8_BOM):
        return BOM_ENCODING

    try:
        # incremental decoder tolerates a multi-byte sequence cut at the block edge
        codecs.getincrementaldecoder(SOURCE_ENCODING)().decode(sample, final=False)
        return SOURCE_ENCODING
    except UnicodeDecodeError:
        pass

    match = from_bytes(sample).best()
    if match is None:
        return SOURCE_ENCODING
    logger.info("Detected %s encoding for %s", match.encoding, path)
    return match.encoding


def _parse_rows(reader, source: str) -> tuple[List[str], List[Record]]:
    header = None
    for row in reader:
        if row:
            header = row
            break

    if header is None:
        raise MalformedInputError(
            "File has no header row",
            path=source,
            suggestion="The first line must name the columns",
        )

    if len(set(header)) != len(header):
        duplicates = sorted({c for c in header if header.count(c) > 1})
        raise MalformedInputError(
            f"Duplicate header columns: {', '.join(duplicates)}",
            path=source,
            line=reader.line_num,
        )

    width = len(header)
    records: List[Record] = []
    short_rows = 0

    for row in reader:
        if not row:
            # with one column a bare line is a record holding an empty value
            if width > 1:
                continue
            row = [""]

        if len(row) > width:
            raise MalformedInputError(
                f"Row has {len(row)} fields but the header declares {width}",
                path=source,
                line=reader.line_num,
                expected_columns=width,
                actual_columns=len(row),
            )

        if len(row) < width:
            short_rows += 1
            logger.debug(
                "Padding row at line %d of %s from %d to %d fields",
                reader.line_num,
                source,
                len(row),
                width,
            )
            row = row + [""] * (width - len(row))

        records.append(dict(zip(header, row)))

    if short_rows:
        logger.info("Padded %d short rows in %s", short_rows, source)

    return header, records


def read_records(path: PathLike) -> RecordSet:
    """Read a headered comma-separated file into an ordered RecordSet.

    The file is consumed row by row; only the parsed records are kept.
    """
    source = str(path)
    try:
        encoding = detect_encoding(path)
        with open(path, "r", encoding=encoding, newline="") as fh:
            reader = csv.reader(fh, delimiter=DELIMITER, quotechar=QUOTECHAR)
            header, records = _parse_rows(reader, source)
    except UnicodeDecodeError as exc:
        raise IOFailureError(
            f"Could not decode {source}",
            path=source,
            operation="read",
            cause=exc,
        ) from exc
    except csv.Error as exc:
        raise MalformedInputError(f"Could not parse {source}: {exc}", path=source) from exc
    except OSError as exc:
        raise IOFailureError(
            f"Could not read {source}",
            path=source,
            operation="read",
            cause=exc,
        ) from exc

    logger.info("Read %d records from %s", len(records), source)
    return RecordSet(columns=header, records=records, encoding=encoding, source=source)


def _output_encoding(record_set: RecordSet) -> str:
    # output is always UTF-8; a source BOM is kept
    if record_set.encoding == BOM_ENCODING:
        return BOM_ENCODING
    return SOURCE_ENCODING


def write_records(record_set: RecordSet, path: PathLike) -> None:
    """
    Write ``record_set`` to ``path`` with a header row.

    The rows go to a temporary file beside the destination which then
    replaces it in one step, so the destination is either untouched or
    fully written. Writing back over the source file is the normal case.
    """
    target = Path(path)
    columns = record_set.column_union()
    encoding = _output_encoding(record_set)

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.",
            suffix=".tmp",
            dir=str(target.parent),
        )
    except OSError as exc:
        raise IOFailureError(
            f"Could not create a temporary file beside {target}",
            path=str(target),
            operation="write",
            cause=exc,
        ) from exc

    os.close(fd)

    try:
        with open(tmp_name, "w", encoding=encoding, newline="") as fh:
            writer = csv.DictWriter(
                fh,
                fieldnames=columns,
                restval="",
                delimiter=DELIMITER,
                quotechar=QUOTECHAR,
                quoting=csv.QUOTE_MINIMAL,
                lineterminator=LINE_TERMINATOR,
            )
            writer.writeheader()
            writer.writerows(record_set.records)

        if target.exists():
            os.chmod(tmp_name, stat.S_IMODE(os.stat(target).st_mode))
        os.replace(tmp_name, target)
    except (OSError, UnicodeEncodeError) as exc:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise IOFailureError(
            f"Could not write {target}",
            path=str(target),
            operation="write",
            cause=exc,
        ) from exc

    logger.info("Wrote %d records to %s", len(record_set), target)
