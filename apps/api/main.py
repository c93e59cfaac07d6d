"""
Dossier Compiler API - FastAPI application entry point.
"""
from __future__ import annotations

import logging
import os
import sys
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from packages.shared.errors import CompilationCancelled, ConfigurationError, RenderError


def _parse_csv_env(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return [value.strip() for value in raw.split(",") if value.strip()]


def _parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("dossier")

app = FastAPI(
    title="Dossier Compiler API",
    description="Compiles regulatory document packages into a single paginated PDF",
    version="0.1.0",
)

cors_allow_origins = _parse_csv_env(
    "CORS_ALLOW_ORIGINS",
    [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
)
audit_logging_enabled = _parse_bool_env("AUDIT_LOGGING", True)
security_headers_enabled = _parse_bool_env("SECURITY_HEADERS_ENABLED", True)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-Id"],
    expose_headers=["Content-Disposition", "X-Request-Id", "X-Dossier-File-Name",
                    "X-Dossier-Document-Count", "X-Dossier-Page-Count", "X-Dossier-Type",
                    "X-Dossier-Warnings"],
)


@app.middleware("http")
async def request_audit_middleware(request: Request, call_next):
    started = time.perf_counter()
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex

    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id

    if security_headers_enabled:
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")

    if audit_logging_enabled:
        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "request_audit request_id=%s method=%s path=%s status=%s duration_ms=%s",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )

    return response


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(CompilationCancelled)
async def cancelled_handler(request: Request, exc: CompilationCancelled):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(RenderError)
async def render_error_handler(request: Request, exc: RenderError):
    logger.error(f"Render failure: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# Register routes
from apps.api.routes.dossiers import router as dossiers_router  # noqa: E402

app.include_router(dossiers_router)


@app.get("/health")
def health():
    return {"status": "ok", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("apps.api.main:app", host="0.0.0.0", port=8000, reload=True)
