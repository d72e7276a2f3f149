"""
Wellness pharmacy POS backend.

ARCHITECTURE:
- FastAPI handlers: validation, stock rules, camelCase <-> column mapping
- SQLAlchemy store: Postgres in production, SQLite for development
- pharmacy.client: HTTP client with a local JSON fallback for the UI

Every route except /health needs the shared bearer token.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db, require_api_token
from pharmacy.api.routes import dashboard, employees, medicines, prescriptions, sales, tickets
from pharmacy.core.config import settings
from pharmacy.core.exceptions import (
    BusinessError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationFailed,
    is_table_missing_error,
)
from pharmacy.db.init_db import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and sample data on startup when INIT_DB_ON_STARTUP is set."""
    if settings.INIT_DB_ON_STARTUP:
        try:
            logger.info("Initializing database...")
            logger.info(f"Database status: {init_db()}")
        except SQLAlchemyError as e:
            # Serve anyway; requests answer 503 until POST /init-db succeeds
            logger.error(f"Startup database initialization failed: {e}")
    yield


app = FastAPI(
    title="Wellness Pharmacy API",
    description="Inventory, sales, prescriptions, staff and tickets for the pharmacy POS.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Restrict CORS to configured origins, explicit methods and headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# Domain errors -> HTTP. Bodies keep the first message in "detail".

def _error_response(error: HTTPException, **extra) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail, **extra}, headers=error.headers)


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return _error_response(BusinessError.bad_request(exc.message), errors=exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    return _error_response(BusinessError.bad_request(errors[0] if errors else "Invalid request"), errors=errors)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(BusinessError.not_found(exc.resource))


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return _error_response(BusinessError.conflict(exc.message))


@app.exception_handler(InsufficientStockError)
async def insufficient_stock_handler(request: Request, exc: InsufficientStockError):
    return _error_response(
        BusinessError.bad_request(exc.message),
        details=exc.details,
        quantity=exc.quantity,
        currentStock=exc.current_stock,
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    if is_table_missing_error(exc):
        logger.warning(f"Database not initialized: {exc}")
        return JSONResponse(
            status_code=503,
            content={"detail": "Database tables are missing. Run POST /init-db.", "dbStatus": "not_initialized"},
        )
    return _error_response(BusinessError.server_error(exc))


protected = [Depends(require_api_token)]
app.include_router(medicines.router, prefix="/medicines", tags=["medicines"], dependencies=protected)
app.include_router(sales.router, prefix="/sales", tags=["sales"], dependencies=protected)
app.include_router(prescriptions.router, prefix="/prescriptions", tags=["prescriptions"], dependencies=protected)
app.include_router(employees.router, tags=["employees"], dependencies=protected)
app.include_router(tickets.router, prefix="/tickets", tags=["tickets"], dependencies=protected)
app.include_router(dashboard.router, tags=["dashboard"], dependencies=protected)


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1 FROM meds LIMIT 1"))
        db_status = "ok"
    except SQLAlchemyError as e:
        db_status = "not_initialized" if is_table_missing_error(e) else "unavailable"
    return {"status": "ok", "database": db_status}


@app.post("/init-db", dependencies=protected)
def initialize_database(db: Session = Depends(get_db)):
    return {"status": init_db(db)}
