# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
FastAPI entry point for the credential share service.

Mounts the admin routers (auth, entries, shares) and the unauthenticated
/shared router, renders ``ShareError`` as ``{"detail", "code"}`` JSON, and
logs one line per request with share tokens masked.

CORS origins come from ``settings.cors_allow_origins``; the default only
admits the local dev frontend.
"""

import re
import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from auth.router import router as auth_router
from entries.router import router as entries_router
from sharing.errors import ShareError
from sharing.router import public_router as shared_router
from sharing.router import router as shares_router
from core.config import settings
from core.logger import logger

app = FastAPI(title="Credential Share", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# /shared/{token} is logged as /shared/abcd… ; the full token never reaches
# the log file.

_TOKEN_PATH = re.compile(r"^(/shared/)([^/]+)")


def _mask_path(path: str) -> str:
    return _TOKEN_PATH.sub(lambda m: m.group(1) + m.group(2)[:4] + "…", path)


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            _mask_path(request.url.path),
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)


# ---------------------------------------------------------------------------
# Share lifecycle errors
# ---------------------------------------------------------------------------


@app.exception_handler(ShareError)
async def _share_error_handler(request: Request, exc: ShareError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(entries_router)
app.include_router(shares_router)
app.include_router(shared_router)


@app.on_event("startup")
async def _on_startup():
    logger.info("Credential Share service starting up")


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("Credential Share service shutting down")


@app.get("/health")
def health():
    return {"status": "ok"}
