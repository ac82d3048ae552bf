"""
Record type replacement pipeline.

Stages run strictly in order:

    IDLE -> CATALOG_FETCHED -> INDEX_BUILT -> FILE_READ -> ENRICHED
         -> FILE_WRITTEN -> DONE

Any error moves the run to FAILED and is re-raised. Nothing is written
before every record has been read and enriched, and the write itself is
atomic, so a failed run leaves the file as it was.
"""

from __future__ import annotations

import logging

from .catalog import CatalogSource, build_index
from .enrich import enrich_records
from .errors import MissingColumnError, ReplaceError
from .models import ReplaceConfig, ReplaceSummary, RunState
from .records import read_records, write_records
from .rules import RT_ID_COLUMN

logger = logging.getLogger(__name__)

__all__ = ["run_replace"]


def _advance(summary: ReplaceSummary, state: RunState) -> None:
    summary.state = state
    logger.info("[%s] %s", summary.object_type, state.value)


def run_replace(
    config: ReplaceConfig,
    catalog: CatalogSource,
    *,
    dry_run: bool = False,
) -> ReplaceSummary:
    summary = ReplaceSummary(
        object_type=config.object_type,
        file_path=config.file_path,
        dry_run=dry_run,
    )

    try:
        entries = catalog.fetch(config.object_type)
        summary.catalog_entries = len(entries)
        _advance(summary, RunState.CATALOG_FETCHED)

        index = build_index(entries, object_type=config.object_type)
        _advance(summary, RunState.INDEX_BUILT)

        record_set = read_records(config.file_path)
        if config.lookup_column not in record_set.columns:
            raise MissingColumnError(config.lookup_column, path=config.file_path)
        summary.records_read = len(record_set)
        _advance(summary, RunState.FILE_READ)

        result = enrich_records(record_set, index, config.lookup_column, RT_ID_COLUMN)
        summary.records_matched = result.matched
        summary.records_processed = result.processed
        _advance(summary, RunState.ENRICHED)

        if dry_run:
            logger.info("Dry run, %s left unchanged", config.file_path)
            return summary

        write_records(result.record_set, config.file_path)
        _advance(summary, RunState.FILE_WRITTEN)
    except ReplaceError as exc:
        failed_in = summary.state
        summary.state = RunState.FAILED
        exc.details.setdefault("state", failed_in.value)
        logger.error(
            "Replacement for %s failed after %s: %s",
            config.object_type,
            failed_in.value,
            exc.message,
        )
        raise

    _advance(summary, RunState.DONE)
    logger.info("%s", summary.describe())
    return summary
