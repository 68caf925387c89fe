import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .db.base import SessionLocal, engine, init_db
from .policies.keywords import DEFAULT_KEYWORDS, KeywordPolicyStore

settings = get_settings()

# Configure logging

# Ensure logs directory exists
logs_dir = Path(settings.LOG_DIR)
if not logs_dir.is_absolute():
    logs_dir = Path(__file__).parent.parent / logs_dir
logs_dir.mkdir(parents=True, exist_ok=True)

# Configure both file and console logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(logs_dir / "moderation.log", encoding="utf-8"),
        logging.StreamHandler(),
    ],
)
logger = logging.getLogger(__name__)


async def prepare_moderation_store() -> None:
    """Create tables and seed the default keyword policy.

    Store problems are logged only: the API keeps serving and screening
    degrades to profanity-only until rules can be read.
    """
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error("Database initialization failed: %s", e, exc_info=True)
        return

    if not settings.MODERATION_SEED_DEFAULT_KEYWORDS:
        logger.info("Default keyword seeding disabled via MODERATION_SEED_DEFAULT_KEYWORDS=False")
        return

    db = SessionLocal()
    try:
        await KeywordPolicyStore(db).seed_defaults_if_empty(DEFAULT_KEYWORDS)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.ENVIRONMENT != "test":
        await prepare_moderation_store()
    try:
        yield
    finally:
        # Ensure DB sessions and engine are properly cleaned up to avoid ResourceWarning
        try:
            SessionLocal.remove()
        except Exception as e:
            logger.warning("SessionLocal.remove() failed: %s", e)
        try:
            engine.dispose()
        except Exception as e:
            logger.warning("engine.dispose() failed: %s", e)


# Initialize FastAPI app with lifespan
app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Content moderation pipeline for the creator/company marketplace",
    version=settings.VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get(f"{settings.API_PREFIX}/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "environment": get_settings().ENVIRONMENT,
    }


# Import and include routers
from .api.v1.routers import content, moderation  # noqa: E402

app.include_router(moderation.router, prefix=settings.API_PREFIX)
app.include_router(content.router, prefix=settings.API_PREFIX)


# Error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
