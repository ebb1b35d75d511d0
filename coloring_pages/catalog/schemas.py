"""
Pydantic schema definitions for the catalog module.

Every model here is a read-only view derived from a bucket listing;
nothing is persisted. Attributes are snake_case in Python and are
serialised under camelCase names (``coverImage``, ``pageCount``,
``thumbnailUrl`` ...) so the JSON matches what the front-end expects.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ViewModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Category(_ViewModel):
    """A top-level folder of the bucket.

    ``id`` and ``slug`` are the same lower-cased, hyphenated form of
    ``name``. ``cover_image`` is either a public object URL or the
    placeholder image path.
    """

    id: str
    name: str
    slug: str
    cover_image: str
    page_count: int = Field(ge=0)


class Page(_ViewModel):
    """A single downloadable coloring page.

    ``id`` is positional (``<slug>-page-<n>`` after sorting), so it
    shifts when pages are added to or removed from the category.
    """

    id: str
    name: str
    file_name: str
    thumbnail_url: str
    download_url: str
    s3_key: str
    category: str
    category_slug: str


class CategoryPages(_ViewModel):
    """Result of a category lookup.

    ``category`` is ``None`` both for an unknown slug and when the
    store could not be listed; ``available`` tells the two apart and is
    never sent to clients.
    """

    category: Optional[Category] = None
    pages: List[Page] = Field(default_factory=list)
    available: bool = Field(default=True, exclude=True)

    @property
    def found(self) -> bool:
        return self.category is not None
