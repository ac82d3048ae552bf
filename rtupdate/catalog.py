"""
Record type catalog: remote query and name -> identifier index.

The catalog service is reached through the small ``CatalogSource`` protocol.
``RecordTypeCatalog`` implements it against the Salesforce REST query
endpoint; authentication happens elsewhere and only the issued access token
is handed in.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import httpx

from .errors import EmptyCatalogError, RemoteQueryError
from .models import CatalogEntry
from .rules import DEFAULT_API_VERSION, DEFAULT_TIMEOUT_SECONDS
from .settings import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "CatalogSource",
    "RecordTypeCatalog",
    "build_index",
    "build_record_type_query",
]


class CatalogSource(Protocol):
    def fetch(self, object_type: str) -> List[CatalogEntry]:
        ...


def build_index(
    entries: Iterable[CatalogEntry],
    object_type: Optional[str] = None,
) -> Mapping[str, str]:
    """
    Build an exact-match, case-sensitive name -> identifier index.

    Duplicate names are resolved last-write-wins: an entry later in
    ``entries`` replaces an earlier one with the same name.

    Raises EmptyCatalogError when ``entries`` is empty.
    """
    index: Dict[str, str] = {}
    for entry in entries:
        previous = index.get(entry.name)
        if previous is not None and previous != entry.identifier:
            logger.warning(
                "Duplicate catalog name %r: %s replaces %s",
                entry.name,
                entry.identifier,
                previous,
            )
        index[entry.name] = entry.identifier

    if not index:
        raise EmptyCatalogError(object_type)

    return MappingProxyType(index)


def _soql_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_record_type_query(object_type: str) -> str:
    return (
        "SELECT DeveloperName, Id FROM RecordType "
        f"WHERE SobjectType = '{_soql_literal(object_type)}'"
    )


class RecordTypeCatalog:
    """Fetch record types for one object type from a Salesforce org.

    One attempt per request. Result pages linked by ``nextRecordsUrl`` are
    followed until the response reports ``done``.
    """

    def __init__(
        self,
        instance_url: str,
        access_token: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.instance_url = instance_url.rstrip("/")
        self.api_version = api_version
        self._client = httpx.Client(
            base_url=self.instance_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "RecordTypeCatalog":
        return cls(
            settings.instance_url,
            settings.access_token,
            api_version=settings.api_version,
            timeout=settings.timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RecordTypeCatalog":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def query_path(self) -> str:
        return f"/services/data/v{self.api_version}/query"

    def fetch(self, object_type: str) -> List[CatalogEntry]:
        soql = build_record_type_query(object_type)
        logger.info("Querying record types for %s", object_type)

        payload = self._get(self.query_path, object_type, params={"q": soql})
        entries = self._parse_records(payload, object_type)

        while not payload.get("done", True) and payload.get("nextRecordsUrl"):
            payload = self._get(payload["nextRecordsUrl"], object_type)
            entries.extend(self._parse_records(payload, object_type))

        logger.info("Fetched %d record types for %s", len(entries), object_type)
        return entries

    def _get(
        self,
        path: str,
        object_type: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.instance_url}{path}"
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise RemoteQueryError(
                f"Catalog request failed: {exc}",
                object_type=object_type,
                url=url,
            ) from exc

        if response.status_code >= 400:
            raise RemoteQueryError(
                f"Catalog query returned HTTP {response.status_code}: {response.text[:500]}",
                object_type=object_type,
                url=url,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteQueryError(
                "Catalog response is not valid JSON",
                object_type=object_type,
                url=url,
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, dict):
            raise RemoteQueryError(
                "Catalog response is not a JSON object",
                object_type=object_type,
                url=url,
                status_code=response.status_code,
            )
        return payload

    @staticmethod
    def _parse_records(payload: Dict[str, Any], object_type: str) -> List[CatalogEntry]:
        entries = []
        for row in payload.get("records") or []:
            try:
                entries.append(CatalogEntry(name=row["DeveloperName"], identifier=row["Id"]))
            except (KeyError, TypeError, ValueError) as exc:
                raise RemoteQueryError(
                    f"Catalog row is missing DeveloperName or Id: {row!r}",
                    object_type=object_type,
                ) from exc
        return entries
