# coloring_pages/main.py
import logging

from fastapi import FastAPI

from .catalog import catalog_router
from .config import Config


logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


app = FastAPI(
    title="Coloring Pages Catalogue",
    description=(
        "Browse, search and download coloring pages. Categories and pages "
        "are derived from the folders and files of an S3 bucket on every "
        "request."
    ),
    version="1.0.0",
)

app.include_router(catalog_router)


@app.get("/")
def health_check():
    return {"status": "ok", "bucket": Config.BUCKET_NAME}
