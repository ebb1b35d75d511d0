"""
Route definitions for the catalogue API.

Endpoints under /api:
- GET  /categories        : non-empty categories, sorted by name
- GET  /category/{slug}   : one category and its pages
- GET  /pages             : every page of every category
- GET  /search?q=         : pages whose name or category contains q
- GET  /download?key=     : stream one object as an attachment
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from ..config import Config
from ..storage import ObjectFetchError, ObjectNotFoundError
from .schemas import Category, CategoryPages, Page
from .store import CatalogStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


@lru_cache(maxsize=1)
def get_catalog() -> CatalogStore:
    """Shared ``CatalogStore`` built from the environment.

    Tests replace it through ``app.dependency_overrides``.
    """
    return CatalogStore.from_config(Config())


def content_disposition(file_name: str) -> str:
    """Attachment header safe for any UTF-8 file name (RFC 6266/5987).

    Header values must be latin-1, so the plain ``filename`` is an ASCII
    fallback and the real name travels percent-encoded in ``filename*``.
    """
    fallback = "".join(
        char if " " <= char <= "~" and char not in '"\\' else "_" for char in file_name
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name, safe='')}"


@router.get("/categories", response_model=List[Category])
def list_categories(catalog: CatalogStore = Depends(get_catalog)) -> List[Category]:
    return catalog.get_categories()


@router.get("/category/{slug}", response_model=CategoryPages)
def get_category(slug: str, catalog: CatalogStore = Depends(get_catalog)) -> CategoryPages:
    """Return a category and its pages.

    An unknown slug is a 404. When the bucket could not be listed the
    lookup is inconclusive, which is reported as 503 instead.
    """
    data = catalog.get_category_pages(slug)
    if not data.available:
        raise HTTPException(status_code=503, detail="Catalogue temporarily unavailable")
    if not data.found:
        raise HTTPException(status_code=404, detail="Category not found")
    return data


@router.get("/pages", response_model=List[Page])
def list_pages(catalog: CatalogStore = Depends(get_catalog)) -> List[Page]:
    return catalog.get_all_pages()


@router.get("/search", response_model=List[Page])
def search_pages(
    q: Optional[str] = Query(default=None, description="Text matched against page and category names"),
    catalog: CatalogStore = Depends(get_catalog),
) -> List[Page]:
    return catalog.search_pages(q)


@router.get("/download")
def download(
    key: Optional[str] = Query(default=None, description="Object key to download"),
    catalog: CatalogStore = Depends(get_catalog),
):
    """Stream an object back with ``Content-Disposition: attachment``."""
    if not key:
        raise HTTPException(status_code=400, detail="Object key required")
    try:
        stored = catalog.fetch_object(key)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except ObjectFetchError as exc:
        logger.error("Download error for %r: %s", key, exc)
        raise HTTPException(status_code=502, detail="Failed to download file")

    headers = {"Content-Disposition": content_disposition(stored.file_name)}
    if stored.content_length is not None:
        headers["Content-Length"] = str(stored.content_length)
    return StreamingResponse(stored.body, media_type=stored.content_type, headers=headers)
