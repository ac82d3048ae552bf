from typing import List

import pytest

from rtupdate.models import CatalogEntry


class FakeCatalog:
    def __init__(self, entries: List[CatalogEntry]):
        self.entries = entries
        self.calls: List[str] = []

    def fetch(self, object_type: str) -> List[CatalogEntry]:
        self.calls.append(object_type)
        return list(self.entries)


@pytest.fixture
def make_catalog():
    def _make(*pairs):
        return FakeCatalog([CatalogEntry(name=n, identifier=i) for n, i in pairs])

    return _make


@pytest.fixture
def gold_silver(make_catalog):
    return make_catalog(("Gold", "RT001"), ("Silver", "RT002"))


@pytest.fixture
def write_csv(tmp_path):
    def _write(text: str, name: str = "records.csv", encoding: str = "utf-8"):
        path = tmp_path / name
        path.write_bytes(text.encode(encoding))
        return path

    return _write
