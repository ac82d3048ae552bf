from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RunState(str, Enum):
    IDLE = "idle"
    CATALOG_FETCHED = "catalog_fetched"
    INDEX_BUILT = "index_built"
    FILE_READ = "file_read"
    ENRICHED = "enriched"
    FILE_WRITTEN = "file_written"
    DONE = "done"
    FAILED = "failed"


class CatalogEntry(BaseModel):
    name: str
    identifier: str


class ReplaceConfig(BaseModel):
    object_type: str = Field(min_length=1, examples=["Account"])
    lookup_column: str = Field(min_length=1, examples=["RecordTypeName"])
    file_path: str = Field(min_length=1, examples=["/data/accounts.csv"])


class ReplaceRequest(ReplaceConfig):
    dry_run: bool = False


class ReplaceSummary(BaseModel):
    object_type: str
    file_path: str
    catalog_entries: int = 0
    records_read: int = 0
    records_matched: int = 0
    records_processed: int = 0
    state: RunState = RunState.IDLE
    dry_run: bool = False

    def describe(self) -> str:
        return (
            f"{self.records_processed} processed, {self.records_matched} matched "
            f"({self.records_read} read from {self.file_path})"
        )


class HealthResponse(BaseModel):
    ok: bool = True
