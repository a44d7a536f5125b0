import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models so every table is registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, ENVIRONMENT, LOG_LEVEL, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.appointments import router as appointments_router
from .domain.pets import router as pets_router
from .domain.service_configurations import router as service_configurations_router
from .errors import AppError, ErrorKind
from .routes.services import router as services_router
from .routes.species import router as species_router
from .routes.users import router as users_router
from .routes.weight_classes import router as weight_classes_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🐾 Grooming scheduler starting ({ENVIRONMENT}, {engine.dialect.name})")
    try:
        # On PostgreSQL this also installs the appointment overlap constraint
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Schema ready")
    except Exception as e:
        # Several workers may race to create the schema on first boot
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("ℹ️ Schema created by another worker")
        else:
            logger.error(f"❌ Schema setup failed: {e}")
            raise

    yield
    engine.dispose()
    logger.info("👋 Grooming scheduler stopped")


app = FastAPI(title="Grooming Scheduler API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Translate domain errors into HTTP responses by kind"""
    if exc.kind == ErrorKind.FATAL:
        logger.error(f"{request.method} {request.url.path} - {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} ({exc.kind.value}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Report malformed requests as 400 rather than FastAPI's default 422.

    The first error's message is surfaced as ``detail``; the full list is kept
    under ``errors`` for clients that want per-field feedback.
    """
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")

    detail = "invalid request"
    if errors:
        message = str(errors[0].get("msg", detail))
        detail = message.removeprefix("Value error, ")

    return JSONResponse(
        status_code=400,
        content={
            "detail": detail,
            "kind": ErrorKind.VALIDATION.value,
            "errors": [
                {"loc": list(error.get("loc", ())), "msg": str(error.get("msg", ""))}
                for error in errors
            ],
        },
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed_ms:.1f}ms")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
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
)

# Routes
app.include_router(users_router)
app.include_router(species_router)
app.include_router(weight_classes_router)
app.include_router(services_router)
app.include_router(pets_router)
app.include_router(service_configurations_router)
app.include_router(appointments_router)


@app.get("/")
def root():
    return {"message": "Grooming Scheduler API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
