"""
Pytest configuration and shared fixtures

The catalogue is derived from an ``ObjectStore``; tests use an
in-memory fake so that no bucket or network is needed.
"""
from typing import Dict, Iterable, List, Optional, Set

import pytest

from coloring_pages.catalog.store import CatalogStore
from coloring_pages.storage import (
    ListingError,
    ObjectFetchError,
    ObjectNotFoundError,
    ObjectRecord,
    StoredObject,
)


BASE_URL = "https://bucket.test"


class FakeObjectStore:
    """Bucket held in memory; keys keep their insertion order."""

    def __init__(self, keys: Iterable[str] = (), contents: Optional[Dict[str, bytes]] = None):
        self.keys: List[str] = list(keys)
        self.contents = dict(contents or {})
        self.fail_prefixes = False
        self.failing: Set[str] = set()
        self.broken: Set[str] = set()
        self.listing_calls: List[str] = []

    def list_prefixes(self) -> List[str]:
        if self.fail_prefixes:
            raise ListingError("bucket unavailable")
        prefixes: List[str] = []
        for key in self.keys:
            if "/" not in key:
                continue
            prefix = key.split("/", 1)[0] + "/"
            if prefix not in prefixes:
                prefixes.append(prefix)
        return prefixes

    def list_objects(self, prefix: str) -> List[ObjectRecord]:
        self.listing_calls.append(prefix)
        if prefix in self.failing:
            raise ListingError(f"cannot list {prefix}")
        return [
            ObjectRecord(key=key, size=len(self.contents.get(key, b"")))
            for key in self.keys
            if key.startswith(prefix)
        ]

    def get_object(self, key: str) -> StoredObject:
        if key in self.broken:
            raise ObjectFetchError(key, f"access denied: {key}")
        if key not in self.contents:
            raise ObjectNotFoundError(key)
        data = self.contents[key]
        return StoredObject(
            key=key,
            body=iter([data]),
            content_type="image/png",
            content_length=len(data),
        )

    def object_url(self, key: str) -> str:
        return f"{BASE_URL}/{key}"


EXAMPLE_KEYS = [
    "Animals/cover.jpg",
    "Animals/lion.jpg",
    "Animals/Tiger.png",
    "Birds/cover.png",
    "Birds/eagle.pdf",
]


@pytest.fixture
def fake_store():
    return FakeObjectStore(EXAMPLE_KEYS)


@pytest.fixture
def catalog(fake_store):
    return CatalogStore(fake_store, max_workers=4)
