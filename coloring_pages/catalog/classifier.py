"""
Key classification and naming helpers.

Everything here is a pure function of object keys (and, for cover
selection, of the whole listing of one category) so the same listing
always yields the same catalogue.
"""

from __future__ import annotations

import enum
import re
from typing import Optional, Sequence

from ..storage import DELIMITER, ObjectRecord

PAGE_EXTENSIONS = (".jpg", ".png", ".pdf")
IMAGE_EXTENSIONS = (".jpg", ".png")
MARKER_WORDS = ("cover", "category")
# Above this many objects, a plain image may stand in as the cover.
COVER_FALLBACK_MIN_OBJECTS = 5

_WHITESPACE_RE = re.compile(r"\s+")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


class KeyKind(str, enum.Enum):
    COVER = "cover"
    PAGE = "page"
    IGNORED = "ignored"


def _has_marker(lowered: str) -> bool:
    return any(word in lowered for word in MARKER_WORDS)


def is_content_page(key: str) -> bool:
    """True for downloadable images/documents that are not covers or markers."""
    lowered = key.lower()
    return lowered.endswith(PAGE_EXTENSIONS) and not _has_marker(lowered)


def is_cover_candidate(key: str, total_objects: int) -> bool:
    """True when ``key`` may serve as the cover art of its category.

    Explicit covers (``cover``/``category`` in the path) always qualify.
    In categories with more than five objects any image whose path does
    not mention ``page`` qualifies too, so a content page can double as
    the cover.
    """
    lowered = key.lower()
    if _has_marker(lowered):
        return True
    return (
        lowered.endswith(IMAGE_EXTENSIONS)
        and "page" not in lowered
        and total_objects > COVER_FALLBACK_MIN_OBJECTS
    )


def classify(key: str) -> KeyKind:
    """Assign a key to exactly one of cover, content page or ignored."""
    if _has_marker(key.lower()):
        return KeyKind.COVER
    if is_content_page(key):
        return KeyKind.PAGE
    return KeyKind.IGNORED


def find_cover(objects: Sequence[ObjectRecord]) -> Optional[ObjectRecord]:
    """First cover candidate in listing order, if any."""
    total = len(objects)
    return next((obj for obj in objects if is_cover_candidate(obj.key, total)), None)


def slugify(name: str) -> str:
    return _WHITESPACE_RE.sub("-", name).lower()


def file_name_of(key: str) -> str:
    return key.split(DELIMITER)[-1]


def readable_name(file_name: str) -> str:
    """Turn ``lion_cub-2.png`` into ``Lion Cub 2``.

    Only the first character of each word is upper-cased; the rest of
    the word is kept as written.
    """
    stem = _EXTENSION_RE.sub("", file_name)
    words = stem.replace("-", " ").replace("_", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def sort_key(name: str) -> str:
    return name.casefold()
