"""
Marksboard - FastAPI application entry point.

Wires together:
1. Structured JSON logging and the X-Request-ID middleware
2. CORS for the browser frontend
3. Routers for students, subjects, marks and statistics
4. Exception handlers mapping failures onto 400 / 404 / 409 / 500
5. Health and service-info endpoints

Layout:
- routes/: API endpoint handlers and their pydantic schemas
- models/: SQLAlchemy ORM models
- services/: semester calculator, score validator, aggregator, marks workflow
"""

import time
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from marksboard.config import CORS_ORIGINS, SERVICE_NAME, SERVICE_VERSION
from marksboard.database import DATABASE_URL, create_tables
from marksboard.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from marksboard.routes import students, subjects, marks, stats
from marksboard.services.marks import MarksError

# Logging must be configured before the first log call
setup_logging()
logger = get_logger("http")
db_logger = get_logger("db")

if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

app = FastAPI(
    title="Marksboard",
    description=(
        "Marks management for teachers: students, subjects and per-exam scores, "
        "with semester derivation and aggregated statistics for dashboards."
    ),
    version=SERVICE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Tag every request with an ID (reusing an incoming X-Request-ID header),
    log its start and completion with latency, and echo the ID back.
    """
    req_id = request.headers.get("x-request-id") or generate_request_id()
    request_id_var.set(req_id)
    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })
    return response


# ──────────────────────────────────────────────────────────────
# Error taxonomy: validation 400, not found 404, conflict 409,
# storage failure 500 (with the underlying message attached)
# ──────────────────────────────────────────────────────────────
def _format_validation_errors(errors) -> str:
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "detail": _format_validation_errors(exc.errors()),
            "errors": jsonable_encoder(exc.errors())
        }
    )


@app.exception_handler(MarksError)
async def marks_error_handler(request: Request, exc: MarksError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    log_with_context(db_logger, "WARNING", "Unhandled integrity error",
                     extra_data={"error": str(exc.orig)})
    return JSONResponse(status_code=409, content={"detail": "Record already exists", "error": str(exc.orig)})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    log_with_context(db_logger, "ERROR", "Storage error: {}".format(exc),
                     exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Server error", "error": str(exc)})


app.include_router(students.router, tags=["Students"])
app.include_router(subjects.router, tags=["Subjects"])
app.include_router(marks.router, tags=["Marks"])
app.include_router(stats.router, tags=["Statistics"])


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION}


@app.get("/", tags=["Root"])
def root():
    """Service information and endpoint index."""
    return {
        "service": "Marksboard",
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "students": "GET|POST /api/students, GET|PUT|DELETE /api/students/{id}",
            "subjects": "GET|POST /api/subjects, PUT|DELETE /api/subjects/{id}",
            "marks": "POST /api/marks, POST /api/marks/batch, GET /api/marks/{studentId}, "
                     "PUT|DELETE /api/marks/{id}",
            "dashboard": "GET /api/stats/dashboard",
            "results": "GET /api/stats/results?branch=&semester=&exam_type=&batch="
        }
    }
