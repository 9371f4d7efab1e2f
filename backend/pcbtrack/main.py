# backend/pcbtrack/main.py
import os, json
import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from pcbtrack.core.db import get_db
from pcbtrack.core.api import ok, fail, UTF8JSONResponse
from pcbtrack.domain.errors import InventoryError

from pcbtrack.routers.components import router as components_router
from pcbtrack.routers.pcbs import router as pcbs_router
from pcbtrack.routers.production import router as production_router
from pcbtrack.routers.imports import router as imports_router
from pcbtrack.routers.analytics import router as analytics_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pcbtrack")

SERVICE_NAME = "PCB Stock Tracker"

app = FastAPI(title=SERVICE_NAME, default_response_class=UTF8JSONResponse)


@app.middleware("http")
async def _force_json_charset(request, call_next):
    resp = await call_next(request)
    ct = resp.headers.get("content-type", "")
    if ct.lower().startswith("application/json") and "charset=" not in ct.lower():
        resp.headers["content-type"] = "application/json; charset=utf-8"
    return resp


# -----------------------------
# Error envelopes
# -----------------------------
@app.exception_handler(InventoryError)
async def inventory_error_to_envelope(request: Request, exc: InventoryError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return fail(exc.message, status_code=exc.status_code, meta=exc.meta, code=exc.code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_to_envelope(request: Request, exc: StarletteHTTPException):
    return fail(str(exc.detail) if exc.detail else exc.__class__.__name__, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_to_envelope(request: Request, exc: RequestValidationError):
    return fail("Validation error", status_code=422, meta={"errors": exc.errors()}, code="validation_error")


# -----------------------------
# CORS (.env)
# -----------------------------
def _parse_origins(env_val):
    if not env_val or env_val.strip() == "*":
        return ["*"]
    try:
        parsed = json.loads(env_val)
        if isinstance(parsed, list):
            return [str(x) for x in parsed]
    except ValueError:
        pass
    return [s.strip() for s in env_val.split(",") if s.strip()]


ALLOWED_ORIGINS = _parse_origins(os.getenv("CORS_ALLOW_ORIGINS", "*"))
logger.info("CORS allow_origins = %s", ALLOWED_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- health ----
@app.get("/health")
def health():
    return ok({"service": SERVICE_NAME})


@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    val = db.execute(text("SELECT 1")).scalar()
    return ok({"db": "ok", "select1": val})


# =========================
# Routers
# =========================
app.include_router(components_router)   # /components
app.include_router(pcbs_router)         # /pcbs, /pcbs/{id}/components
app.include_router(production_router)   # /production
app.include_router(imports_router)      # /import
app.include_router(analytics_router)    # /analytics

logger.debug("routes registered: %s", [getattr(r, "path", str(r)) for r in app.routes])
