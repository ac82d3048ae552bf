from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .records import RecordSet
from .rules import RT_ID_COLUMN


@dataclass(frozen=True)
class EnrichResult:
    record_set: RecordSet
    matched: int

    @property
    def processed(self) -> int:
        return len(self.record_set)


def enrich_records(
    record_set: RecordSet,
    index: Mapping[str, str],
    lookup_column: str,
    target_column: str = RT_ID_COLUMN,
) -> EnrichResult:
    """
    Resolve ``lookup_column`` through ``index`` into ``target_column``.

    Records are copied, never mutated. A record whose lookup value is empty
    or unknown keeps its current target value, or gets "" when the column
    is new. A miss is not an error.
    """
    enriched = []
    matched = 0

    for record in record_set.records:
        out = dict(record)
        key = out.get(lookup_column) or ""
        if key and key in index:
            out[target_column] = index[key]
            matched += 1
        else:
            out.setdefault(target_column, "")
        enriched.append(out)

    columns = list(record_set.columns)
    if target_column not in columns:
        columns.append(target_column)

    return EnrichResult(
        record_set=RecordSet(
            columns=columns,
            records=enriched,
            encoding=record_set.encoding,
            source=record_set.source,
        ),
        matched=matched,
    )
