# coloring_pages/storage.py
"""
Object storage access for the catalogue.

The catalogue never owns any data: every view is derived from a listing
of the bucket. This module wraps the S3 API behind the small
``ObjectStore`` interface used by ``catalog.store`` so that the
derivation code can be exercised against any backend (an in-memory
fake in tests, the optional cache in ``catalog.cache``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional
from urllib.parse import quote

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from typing_extensions import Protocol

from .config import Config


logger = logging.getLogger(__name__)

DELIMITER = "/"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class StorageError(Exception):
    """Base class for failures talking to the object store."""


class ListingError(StorageError):
    """A listing request failed."""


class ObjectFetchError(StorageError):
    """A single object could not be retrieved."""

    def __init__(self, key: str, message: str = ""):
        self.key = key
        super().__init__(message or f"Could not fetch object {key!r}")


class ObjectNotFoundError(ObjectFetchError):
    """The requested key does not exist in the bucket."""

    def __init__(self, key: str):
        super().__init__(key, f"No such object: {key!r}")


@dataclass(frozen=True)
class ObjectRecord:
    """One entry of a bucket listing."""

    key: str
    size: int = 0
    # S3 listings do not report content types, only GetObject does.
    content_type: Optional[str] = None


@dataclass(frozen=True)
class StoredObject:
    """The body and metadata of a fetched object."""

    key: str
    body: Iterator[bytes]
    content_type: str = DEFAULT_CONTENT_TYPE
    content_length: Optional[int] = None

    @property
    def file_name(self) -> str:
        return self.key.split(DELIMITER)[-1]


class ObjectStore(Protocol):
    """Listing capability the catalogue is derived from."""

    def list_prefixes(self) -> List[str]:
        ...

    def list_objects(self, prefix: str) -> List[ObjectRecord]:
        ...

    def get_object(self, key: str) -> StoredObject:
        ...

    def object_url(self, key: str) -> str:
        ...


def create_s3_client(config: Optional[Config] = None):
    """Build a boto3 S3 client from the application configuration.

    Explicit credentials are only passed when both halves are set;
    otherwise boto3 falls back to its default credential chain.
    """
    config = config or Config()
    kwargs = {
        "region_name": config.AWS_REGION,
        "config": BotoConfig(retries={"max_attempts": 3, "mode": "standard"}),
    }
    if config.AWS_ACCESS_KEY_ID and config.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = config.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = config.AWS_SECRET_ACCESS_KEY
    return boto3.client("s3", **kwargs)


class S3ObjectStore:
    """``ObjectStore`` backed by a single S3 bucket."""

    def __init__(self, bucket: str, client=None, public_base_url: Optional[str] = None):
        self.bucket = bucket
        self.client = client if client is not None else create_s3_client()
        self.public_base_url = (
            public_base_url or f"https://{bucket}.s3.amazonaws.com"
        ).rstrip("/")

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "S3ObjectStore":
        config = config or Config()
        return cls(
            bucket=config.BUCKET_NAME,
            client=create_s3_client(config),
            public_base_url=config.public_base_url,
        )

    def _paginate(self, **params):
        paginator = self.client.get_paginator("list_objects_v2")
        return paginator.paginate(Bucket=self.bucket, **params)

    def list_prefixes(self) -> List[str]:
        """Return the top-level prefixes of the bucket, delimiter included."""
        prefixes: List[str] = []
        try:
            for page in self._paginate(Delimiter=DELIMITER):
                for entry in page.get("CommonPrefixes", []):
                    prefixes.append(str(entry["Prefix"]))
        except (BotoCoreError, ClientError) as exc:
            raise ListingError(f"Listing prefixes of {self.bucket!r} failed: {exc}") from exc
        return prefixes

    def list_objects(self, prefix: str) -> List[ObjectRecord]:
        """Return every object under ``prefix`` in listing order."""
        records: List[ObjectRecord] = []
        try:
            for page in self._paginate(Prefix=prefix):
                for obj in page.get("Contents", []):
                    records.append(
                        ObjectRecord(key=str(obj["Key"]), size=int(obj.get("Size") or 0))
                    )
        except (BotoCoreError, ClientError) as exc:
            raise ListingError(f"Listing {prefix!r} in {self.bucket!r} failed: {exc}") from exc
        return records

    def get_object(self, key: str) -> StoredObject:
        """Fetch one object for passthrough download."""
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_KEY_CODES:
                raise ObjectNotFoundError(key) from exc
            raise ObjectFetchError(key, f"Fetching {key!r} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise ObjectFetchError(key, f"Fetching {key!r} failed: {exc}") from exc

        length = response.get("ContentLength")
        return StoredObject(
            key=key,
            body=response["Body"].iter_chunks(),
            content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
            content_length=int(length) if length is not None else None,
        )

    def object_url(self, key: str) -> str:
        return f"{self.public_base_url}/{quote(key, safe='/')}"
