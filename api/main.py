import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from admin import router as admin_router
from catalog import router as catalog_router
from core import settings
from core.db import Database
from core.errors import StorageUnavailable, register_exception_handlers
from core.logging import configure_logging
from ingestion import router as ingestion_router

logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # One pool per process, shared by every request.
    app.state.db = Database.from_env()
    await app.state.db.connect()
    logger.info("startup env=%s version=%s", settings.app_env(), settings.app_version())
    try:
        yield
    finally:
        await app.state.db.close()


app = FastAPI(title="SCED Finder API", version=settings.app_version(), lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request method=%s path=%s status=%s duration_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


register_exception_handlers(app)

app.include_router(catalog_router.router, tags=["catalog"])
app.include_router(ingestion_router.router, tags=["ingestion"])
app.include_router(admin_router.router, tags=["admin"])


@app.get("/health")
async def health(request: Request) -> JSONResponse:
    body = {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.app_env(),
        "version": settings.app_version(),
        "database": "connected",
    }
    try:
        db = getattr(request.app.state, "db", None)
        if db is None:
            raise StorageUnavailable("Database is not configured.")
        await db.ping()
    except StorageUnavailable as exc:
        body.update(status="ERROR", database="disconnected", error=exc.message)
        return JSONResponse(status_code=500, content=body)
    return JSONResponse(status_code=200, content=body)
