"""
Read-only HTTP view over the listings `prop24 scrape` stored.

Run with `python -m api.main` or `uvicorn api.main:app`.
"""
import logging
import sqlite3
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from prop24.utils import init_logger

from .config import config
from .database import read_only_connection
from .routes import listings_router

init_logger(name="api", console_level=config.LOG_LEVEL, log_file=None)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate()
    logger.info(f">>> Serving listings from {config.DB_PATH}")
    yield


app = FastAPI(title=config.API_TITLE, version=config.API_VERSION, lifespan=lifespan)
app.include_router(listings_router)


@app.exception_handler(sqlite3.Error)
async def store_unavailable(request: Request, exc: sqlite3.Error):
    # Locked or missing store, typically while a scrape is writing
    logger.error(f">>> Listing store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Listing store unavailable"})


@app.get("/health")
def health():
    with read_only_connection() as conn:
        listings = conn.execute("SELECT COUNT(*) FROM listings").fetchone()[0]
    return {"status": "ok", "version": config.API_VERSION, "listings": listings}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, log_level=config.LOG_LEVEL.lower())
