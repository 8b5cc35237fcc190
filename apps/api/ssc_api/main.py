from contextlib import asynccontextmanager
from fastapi import FastAPI
import os

from ssc_api.core.db import db_health, init_db
from ssc_api.core.errors import FrameworkError
from ssc_api.core.observability import emit as _emit
from ssc_api.modules.catalogue.router import router as catalogue_router
from ssc_api.modules.framework_versions.router import router as framework_versions_router

APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/app.db")


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    # production schema comes from alembic; DB_AUTO_CREATE=1 is for local runs
    if os.getenv("DB_AUTO_CREATE", "0") == "1":
        init_db()
        _emit("info", "db.init", "tables ensured from SQLModel metadata", None, __name__)
    yield


app = FastAPI(title="SSC Framework API", version=APP_VERSION, lifespan=_lifespan)

# === OBSERVABILITY FOUNDATIONS ===
# Contract locks:
# - /health keys: status, version, db, last_error_summary
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details
import uuid, logging
from typing import Any, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

_log = logging.getLogger("ssc_api")
if not _log.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int):
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )

@app.middleware("http")
async def _request_id_mw(request: Request, call_next):
    rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
    request.state.request_id = rid
    _emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
    try:
        resp = await call_next(request)
    except Exception as e:
        _emit("error", "http.request.exception", str(e), rid, __name__)
        raise
    resp.headers["X-Request-Id"] = rid
    _emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp,'status_code',None)}", rid, __name__)
    return resp

@app.exception_handler(FrameworkError)
async def _framework_exc_handler(request: Request, exc: FrameworkError):
    rid = getattr(request.state, "request_id", None)
    _emit("warning", "framework.error", exc.message, rid, __name__, error=exc.code)
    return _err_envelope(exc.code, exc.message, rid, exc.details, exc.status_code)

@app.exception_handler(StarletteHTTPException)
async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("http_error", str(exc.detail), rid, {"status_code": exc.status_code}, exc.status_code)

@app.exception_handler(RequestValidationError)
async def _validation_exc_handler(request: Request, exc: RequestValidationError):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("validation_error", "request validation failed", rid, exc.errors(), 422)

@app.exception_handler(Exception)
async def _unhandled_exc_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", None)
    return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)
# === END OBSERVABILITY FOUNDATIONS ===


app.include_router(catalogue_router)
app.include_router(framework_versions_router)


@app.get("/health")
def health():
    db = db_health()
    return {
        'status': 'ok' if db.get('status') == 'ok' else 'degraded',
        'version': os.getenv('APP_VERSION', APP_VERSION),
        'db': db,
        'last_error_summary': None,
    }
