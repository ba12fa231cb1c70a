"""
SafetyGate API — Main Application

POST /gate     — Screen text, decide export, return court-safe rewrite
POST /qa       — Document-level QA over an assembled report
GET  /patterns — List detection rules in the active pattern table
GET  /health   — Health check
"""

from __future__ import annotations

import dataclasses
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from safetygate import __version__
from safetygate.config import settings
from safetygate.gate import run_safety_gate
from safetygate.logging import setup_logging, get_logger
from safetygate.patterns import PATTERN_TABLE_VERSION, pattern_table
from safetygate.qa import run_safety_qa
from safetygate.schemas.gate import (
    GateRequest,
    GateResponse,
    QARequest,
    QAResponse,
    HealthResponse,
)
from safetygate.types import (
    Entity,
    EvidenceArtifact,
    GateContext,
    SafetyGateInput,
    SafetyQAContext,
    YearRange,
)

logger = get_logger("api")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    setup_logging()
    logger.info("SafetyGate API starting",
                extra={"table_version": PATTERN_TABLE_VERSION, "rules_count": len(pattern_table)})
    yield
    logger.info("SafetyGate API shutting down")


app = FastAPI(
    title="SafetyGate API",
    description="Pre-export defamation, privacy and contempt-of-court screening",
    version=f"{__version__} (patterns {PATTERN_TABLE_VERSION})",
    lifespan=lifespan,
)

# CORS: set SAFETYGATE_CORS_ORIGINS in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error. The request could not be completed.",
        },
    )


# ============================================================
# ROUTES
# ============================================================

@app.post("/gate", response_model=GateResponse)
def gate(request: GateRequest):
    """Run the safety gate over one piece of text. Nothing is persisted."""
    gate_input = SafetyGateInput(
        text=request.text,
        mode=request.mode,
        context=GateContext(
            entities=tuple(Entity(name=e.name, category=e.category) for e in request.entities),
            evidence_artifacts=tuple(
                EvidenceArtifact(id=a.id, artifact_value=a.artifact_value)
                for a in request.evidence_artifacts
            ),
        ),
        court_style=request.court_style,
        filing_type=request.filing_type,
        is_admin_override=request.is_admin_override,
    )
    result = run_safety_gate(gate_input)

    payload = dataclasses.asdict(result)
    payload["export_allowed"] = result.export_allowed
    payload["pattern_table_version"] = PATTERN_TABLE_VERSION
    return payload


@app.post("/qa", response_model=QAResponse)
def qa(request: QARequest):
    """Run document-level QA over a summarized report context."""
    fields = request.model_dump(exclude={"year_range", "case_year_range"})
    ctx = SafetyQAContext(
        **fields,
        year_range=YearRange(**request.year_range.model_dump()) if request.year_range else None,
        case_year_range=(
            YearRange(**request.case_year_range.model_dump()) if request.case_year_range else None
        ),
    )
    report = run_safety_qa(ctx)
    return dataclasses.asdict(report)


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check."""
    return {
        "status": "operational",
        "version": __version__,
        "gate_version": settings.GATE_VERSION,
        "pattern_table_version": PATTERN_TABLE_VERSION,
        "rules_count": len(pattern_table),
    }


@app.get("/patterns")
async def get_patterns():
    """Return every detection rule in the active pattern table."""
    rules = pattern_table.describe()
    return {
        "table_version": pattern_table.version,
        "total_patterns": len(rules),
        "patterns": rules,
    }


# --- Security + Version Headers Middleware ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security and version headers to all responses."""
    response = await call_next(request)
    # Version headers
    response.headers["X-SafetyGate-Version"] = __version__
    response.headers["X-Pattern-Table-Version"] = PATTERN_TABLE_VERSION
    # Security headers
    response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# --- Body Size Limit Middleware ---
_MAX_BODY_BYTES = 2_097_152  # 2 MB


@app.middleware("http")
async def enforce_body_size_limit(request: Request, call_next):
    """Reject requests exceeding 2MB — guards both Content-Length and chunked bodies."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > _MAX_BODY_BYTES:
        return JSONResponse(
            status_code=413,
            content={"detail": "Request body too large."},
        )

    if request.method in ("POST", "PUT", "PATCH"):
        body = await request.body()
        if len(body) > _MAX_BODY_BYTES:
            return JSONResponse(
                status_code=413,
                content={"detail": "Request body too large."},
            )

    return await call_next(request)


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response
