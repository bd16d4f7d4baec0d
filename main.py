"""B People rate limiter — FastAPI entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from bpeople_ratelimit.config import settings
from bpeople_ratelimit.rate_limiter import RateLimiter
from bpeople_ratelimit.routers import limits

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    limiter = RateLimiter(sweep_interval_seconds=settings.sweep_interval_seconds)
    app.state.rate_limiter = limiter
    if settings.sweep_enabled:
        await limiter.start()
    else:
        logger.warning("Rate limiter sweep disabled; expired records are only replaced lazily")

    yield

    await limiter.stop()
    logger.info("Rate limiter shut down with %d tracked keys", len(limiter))


app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)
app.include_router(limits.router)


@app.get("/health")
async def health():
    limiter: RateLimiter | None = getattr(app.state, "rate_limiter", None)
    if limiter is None:
        return JSONResponse(status_code=503, content={"status": "degraded", "limiter": "uninitialized"})
    sweeper_ok = limiter.sweeper_running or not settings.sweep_enabled
    body = {
        "status": "ok" if sweeper_ok else "degraded",
        "sweeper": "running" if limiter.sweeper_running else "stopped",
        "tracked_keys": len(limiter),
    }
    if sweeper_ok:
        return body
    return JSONResponse(status_code=503, content=body)
