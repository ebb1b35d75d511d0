# coloring_pages/config.py
"""Configuration management."""
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration, read from the environment."""

    # Storage
    BUCKET_NAME = os.getenv("BUCKET_NAME", "coloring-pages-1")
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")

    # Public object URLs. When unset, the virtual-hosted S3 URL is used.
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")
    PLACEHOLDER_IMAGE = os.getenv("PLACEHOLDER_IMAGE", "/api/placeholder/400/400")

    # Catalogue derivation
    MAX_LISTING_WORKERS = int(os.getenv("MAX_LISTING_WORKERS", "8"))
    CATALOG_CACHE_TTL = float(os.getenv("CATALOG_CACHE_TTL", "0"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @property
    def public_base_url(self) -> str:
        """Base URL under which objects are publicly readable."""
        if self.PUBLIC_BASE_URL:
            return self.PUBLIC_BASE_URL.rstrip("/")
        return f"https://{self.BUCKET_NAME}.s3.amazonaws.com"
