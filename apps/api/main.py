from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from scratch_api.dependencies import get_gateway, get_settings
from scratch_api.domain.exceptions import (
    GistSyncError,
    NoMarkdownFile,
    NotAuthenticated,
    NotFound,
    Offline,
    RateLimited,
    RemoteError,
    ValidationError,
)
from scratch_api.interface.api.routes import router

_STATUS_BY_ERROR: dict[type[GistSyncError], int] = {
    NotAuthenticated: 401,
    RateLimited: 429,
    Offline: 503,
    ValidationError: 400,
    NotFound: 404,
    NoMarkdownFile: 422,
    RemoteError: 502,
}


def status_for(exc: GistSyncError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if get_gateway.cache_info().currsize:
        await get_gateway().aclose()


def create_app() -> FastAPI:
    app = FastAPI(title="Scratch API", version="0.1.0", lifespan=lifespan)

    settings = get_settings()
    logger = logging.getLogger("scratch.api")
    logging.getLogger("scratch").setLevel(settings.log_level)

    @app.exception_handler(GistSyncError)
    async def gist_sync_error(request: Request, exc: GistSyncError):
        status = status_for(exc)
        headers = {"X-Request-ID": getattr(request.state, "request_id", "")}
        if isinstance(exc, RateLimited):
            headers["Retry-After"] = str(exc.retry_after_s)
        logger.info(
            "request_failed",
            extra={"rid": headers["X-Request-ID"], "path": request.url.path, "code": exc.code, "status": status},
        )
        return JSONResponse(status_code=status, content={"detail": exc.code, "message": exc.message}, headers=headers)

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        if settings.api_auth_mode == "bearer":
            if request.url.path != "/health":
                token = settings.api_auth_token or ""
                auth = request.headers.get("authorization") or ""
                if not token or auth != f"Bearer {token}":
                    return JSONResponse(
                        status_code=401,
                        content={"detail": "unauthorized"},
                        headers={"X-Request-ID": request_id},
                    )

        try:
            response = await call_next(request)
        except Exception:
            dt_ms = (time.perf_counter() - start) * 1000.0
            logger.exception("request_error", extra={"rid": request_id, "path": request.url.path, "ms": dt_ms})
            return JSONResponse(
                status_code=500,
                content={"detail": "internal_error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        dt_ms = (time.perf_counter() - start) * 1000.0
        extra = {
            "rid": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": dt_ms,
        }
        if settings.api_debug_log:
            extra["query"] = request.url.query
        logger.info("request", extra=extra)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router)
    return app


app = create_app()
