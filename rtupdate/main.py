from pathlib import Path
from typing import Iterator

from fastapi import Depends, FastAPI, HTTPException

from .catalog import CatalogSource, RecordTypeCatalog
from .errors import (
    ConfigurationError,
    EmptyCatalogError,
    IOFailureError,
    MalformedInputError,
    PathNotAllowedError,
    RemoteQueryError,
    ReplaceError,
)
from .models import HealthResponse, ReplaceRequest, ReplaceSummary
from .pipeline import run_replace
from .settings import load_data_dir, load_settings, resolve_data_path

app = FastAPI(
    title="rtupdate",
    description="Resolve record type names to record type ids in CSV exports",
    version="0.1.0",
)


def get_catalog() -> Iterator[CatalogSource]:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=exc.to_dict()) from exc
    with RecordTypeCatalog.from_settings(settings) as catalog:
        yield catalog


def get_data_dir() -> Path:
    return load_data_dir()


def _status_for(exc: ReplaceError) -> int:
    if isinstance(exc, PathNotAllowedError):
        return 403
    if isinstance(exc, (EmptyCatalogError, MalformedInputError)):
        return 422
    if isinstance(exc, IOFailureError):
        return 404 if isinstance(exc.cause, FileNotFoundError) else 500
    if isinstance(exc, RemoteQueryError):
        return 502
    return 500


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/replace", response_model=ReplaceSummary)
def replace_record_types(
    request: ReplaceRequest,
    catalog: CatalogSource = Depends(get_catalog),
    data_dir: Path = Depends(get_data_dir),
):
    try:
        file_path = resolve_data_path(data_dir, request.file_path)
        config = request.model_copy(update={"file_path": str(file_path)})
        return run_replace(config, catalog, dry_run=request.dry_run)
    except ReplaceError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=exc.to_dict()) from exc
