"""
Catalog package for the coloring pages API.

This package derives a browsable catalogue from the object keys of a
bucket: top-level folders become categories (with a cover image and a
page count) and the images and PDFs inside them become downloadable
pages. Nothing is stored; ``store.CatalogStore`` recomputes the views
from a fresh listing on every call, and ``router`` exposes them over
HTTP.
"""

from .router import router as catalog_router  # noqa: F401
