import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError

# Import models so every table is registered with Base before create_all
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.clients.router import router as clients_router
from .domain.closures.router import router as closures_router
from .domain.payments.router import refunds_router
from .domain.payments.router import router as payments_router
from .domain.reports.router import router as reports_router
from .security_headers import SecurityHeadersMiddleware
from .shared.exceptions import register_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Clinic Scheduler starting on {engine.url.get_backend_name()} database...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Ledger tables ready")
    except OperationalError as e:
        # Another worker may be creating the same tables
        if "already exists" not in str(e):
            logger.error(f"Failed to create ledger tables: {e}")
            raise
        logger.info("Ledger tables already exist")
    yield
    engine.dispose()
    logger.info("Clinic Scheduler shut down")


app = FastAPI(title="Clinic Scheduler API", version="1.0.0", lifespan=lifespan)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    if request.method != "GET":
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Routes
app.include_router(clients_router)
app.include_router(appointments_router)
app.include_router(payments_router)
app.include_router(refunds_router)
app.include_router(closures_router)
app.include_router(reports_router)


@app.get("/")
def root():
    return {"message": "Clinic Scheduler API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
