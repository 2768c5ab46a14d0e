"""HTTP API for the restaurant status checker."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from checkopen.checker import StatusChecker
from checkopen.config import Settings
from checkopen.errors import LookupFailedError

SETTINGS = Settings.from_env()

# Keep request-level logging (including httpx request lines) in the app process.
logging.basicConfig(
    level=getattr(logging, SETTINGS.log_level.upper(), logging.INFO),
    format="%(levelname)s %(message)s",
)
logging.getLogger("httpx").setLevel(logging.INFO)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One checker per process so every request shares the same rate limiter
    app.state.checker = StatusChecker.from_settings(SETTINGS)
    try:
        yield
    finally:
        await app.state.checker.aclose()


app = FastAPI(title="Restaurant Status Checker", lifespan=lifespan)


def get_checker(request: Request) -> StatusChecker:
    return request.app.state.checker


@app.get("/health")
def health():
    return {"status": "ok", "message": "Restaurant Status Checker API is running"}


@app.get("/api/v1/status/{restaurant_id}")
async def restaurant_status(
    restaurant_id: str,
    checker: StatusChecker = Depends(get_checker),
):
    if not restaurant_id.strip():
        return JSONResponse(
            {"error": "bad_request", "message": "Restaurant ID is required"},
            status_code=400,
        )

    try:
        status = await checker.lookup(restaurant_id)
    except LookupFailedError as exc:
        logger.warning("Lookup failed for %s: %s", restaurant_id, exc)
        return JSONResponse(
            {"error": "upstream_error", "message": str(exc), "attempts": exc.attempts},
            status_code=502,
        )

    return status.to_dict()


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting server on port %s...", SETTINGS.port)
    uvicorn.run(app, host=SETTINGS.host, port=SETTINGS.port)
