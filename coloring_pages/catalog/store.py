"""
Catalogue derivation.

``CatalogStore`` turns the flat key space of the bucket into categories
and pages on every call. There is no index: each query lists the
bucket again, so results always reflect the current set of objects.

The top-level folders become categories. Every folder is listed on its
own worker thread and the results are joined before anything is
sorted; one folder failing to list only drops that folder. Failures of
the listing as a whole are logged and reported as an empty catalogue,
while fetching a single object for download raises.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import Config
from ..storage import DELIMITER, ObjectRecord, ObjectStore, S3ObjectStore, StoredObject
from .cache import CachingObjectStore
from .classifier import (
    KeyKind,
    classify,
    file_name_of,
    find_cover,
    readable_name,
    slugify,
    sort_key,
)
from .schemas import Category, CategoryPages, Page


logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_IMAGE = "/api/placeholder/400/400"


@dataclass(frozen=True)
class ListingResult:
    """Outcome of listing one category folder."""

    name: str
    objects: Tuple[ObjectRecord, ...] = ()
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class _Snapshot:
    category: Category
    objects: Tuple[ObjectRecord, ...]


def _strip_delimiter(prefix: str) -> str:
    return prefix[: -len(DELIMITER)] if prefix.endswith(DELIMITER) else prefix


def find_slug_collisions(categories: Sequence[Category]) -> Dict[str, List[str]]:
    """Map each slug shared by several categories to their names."""
    by_slug: "OrderedDict[str, List[str]]" = OrderedDict()
    for category in categories:
        by_slug.setdefault(category.slug, []).append(category.name)
    return {slug: names for slug, names in by_slug.items() if len(names) > 1}


def _matches(page: Page, needle: str) -> bool:
    return needle in page.name.casefold() or needle in page.category.casefold()


class CatalogStore:
    """Derives the catalogue from an ``ObjectStore``."""

    def __init__(
        self,
        object_store: ObjectStore,
        placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE,
        max_workers: int = 8,
    ):
        self.object_store = object_store
        self.placeholder_image = placeholder_image
        self.max_workers = max(1, int(max_workers))

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "CatalogStore":
        config = config or Config()
        object_store: ObjectStore = S3ObjectStore.from_config(config)
        if config.CATALOG_CACHE_TTL > 0:
            object_store = CachingObjectStore(object_store, ttl=config.CATALOG_CACHE_TTL)
        return cls(
            object_store,
            placeholder_image=config.PLACEHOLDER_IMAGE,
            max_workers=config.MAX_LISTING_WORKERS,
        )

    # ------------------------------------------------------------------
    # Listing

    def _list_category(self, name: str) -> ListingResult:
        try:
            objects = self.object_store.list_objects(f"{name}{DELIMITER}")
        except Exception as exc:
            return ListingResult(name=name, error=exc)
        return ListingResult(name=name, objects=tuple(objects))

    def _list_categories(self, names: Sequence[str]) -> List[ListingResult]:
        """List every folder concurrently and wait for all of them."""
        if not names:
            return []
        workers = min(self.max_workers, len(names))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="catalog-list") as pool:
            futures = [pool.submit(self._list_category, name) for name in names]
            wait(futures)
        return [future.result() for future in futures]

    # ------------------------------------------------------------------
    # Derivation

    def _build_category(self, name: str, objects: Sequence[ObjectRecord]) -> Category:
        slug = slugify(name)
        cover = find_cover(objects)
        return Category(
            id=slug,
            name=name,
            slug=slug,
            cover_image=self.object_store.object_url(cover.key) if cover else self.placeholder_image,
            page_count=sum(1 for obj in objects if classify(obj.key) is KeyKind.PAGE),
        )

    def _build_pages(self, category: Category, objects: Sequence[ObjectRecord]) -> List[Page]:
        named = [
            (readable_name(file_name_of(obj.key)), obj)
            for obj in objects
            if classify(obj.key) is KeyKind.PAGE
        ]
        # list.sort is stable, so equal names keep their listing order.
        named.sort(key=lambda item: sort_key(item[0]))
        pages: List[Page] = []
        for position, (name, obj) in enumerate(named, start=1):
            url = self.object_store.object_url(obj.key)
            pages.append(
                Page(
                    id=f"{category.slug}-page-{position}",
                    name=name,
                    file_name=file_name_of(obj.key),
                    thumbnail_url=url,
                    download_url=url,
                    s3_key=obj.key,
                    category=category.name,
                    category_slug=category.slug,
                )
            )
        return pages

    def _scan(self) -> Tuple[List[_Snapshot], List[str]]:
        """Derive the published categories together with their listings.

        Returns the snapshots and the names of the folders that could
        not be listed. Raises whatever the top-level listing raises.
        """
        names = [_strip_delimiter(prefix) for prefix in self.object_store.list_prefixes()]
        snapshots: List[_Snapshot] = []
        failed: List[str] = []
        for result in self._list_categories(names):
            if not result.ok:
                logger.warning("Skipping category %r, listing failed: %s", result.name, result.error)
                failed.append(result.name)
                continue
            category = self._build_category(result.name, result.objects)
            if category.page_count == 0:
                continue
            snapshots.append(_Snapshot(category=category, objects=result.objects))
        snapshots.sort(key=lambda snap: sort_key(snap.category.name))

        for slug, clashing in find_slug_collisions([snap.category for snap in snapshots]).items():
            logger.warning(
                "Categories %s share the slug %r; lookups resolve to %r "
                "and their page ids repeat in the full index",
                ", ".join(repr(name) for name in clashing),
                slug,
                clashing[0],
            )
        return snapshots, failed

    # ------------------------------------------------------------------
    # Public operations

    def get_categories(self) -> List[Category]:
        """Return the non-empty categories, sorted by name."""
        try:
            snapshots, _ = self._scan()
        except Exception as exc:
            logger.error("Error fetching categories: %s", exc)
            return []
        return [snap.category for snap in snapshots]

    def get_category_pages(self, slug: str) -> CategoryPages:
        """Return the category matching ``slug`` and its sorted pages.

        A slug that only matches a folder whose listing failed is
        reported as unavailable, not as unknown.
        """
        try:
            snapshots, failed = self._scan()
        except Exception as exc:
            logger.error("Error fetching category pages for %r: %s", slug, exc)
            return CategoryPages(available=False)

        snapshot = next((snap for snap in snapshots if snap.category.slug == slug), None)
        if snapshot is None:
            if any(slugify(name) == slug for name in failed):
                logger.error("Category %r could not be listed", slug)
                return CategoryPages(available=False)
            return CategoryPages()
        return CategoryPages(
            category=snapshot.category,
            pages=self._build_pages(snapshot.category, snapshot.objects),
        )

    def get_all_pages(self) -> List[Page]:
        """Every page of every category, category by category."""
        try:
            snapshots, _ = self._scan()
        except Exception as exc:
            logger.error("Error fetching all pages: %s", exc)
            return []
        pages: List[Page] = []
        for snap in snapshots:
            pages.extend(self._build_pages(snap.category, snap.objects))
        return pages

    def search_pages(self, query: Optional[str] = None) -> List[Page]:
        """Pages whose name or category name contains ``query``.

        Matching is a case-insensitive substring test; the order of the
        full index is kept. An empty query returns the full index.
        """
        pages = self.get_all_pages()
        if not query:
            return pages
        needle = query.casefold()
        return [page for page in pages if _matches(page, needle)]

    def fetch_object(self, key: str) -> StoredObject:
        """Fetch a raw object for download; storage errors propagate."""
        return self.object_store.get_object(key)
