"""Main FastAPI application."""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from splitlab.config import get_settings
from splitlab.middleware.logging import LoggingMiddleware, get_logger
from splitlab.api import analytics, embed, experiments, health
from splitlab.database import engine, Base, SessionLocal
from splitlab.seed import seed_sample_experiment
from splitlab.services.errors import SplitLabError

settings = get_settings()
logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    # Startup
    Base.metadata.create_all(bind=engine)
    logger.info("database_tables_ready")

    if settings.seed_sample_data:
        db = SessionLocal()
        try:
            experiment = seed_sample_experiment(db)
            if experiment:
                logger.info("database_seeded", experiment_id=str(experiment.id))
        except SplitLabError as e:
            logger.error("database_seed_failed", error=e.message)
        finally:
            db.close()

    yield  # App runs here

    # Shutdown
    logger.info("shutting_down", service=settings.app_name)

# Create FastAPI app
app = FastAPI(
    title="SplitLab",
    description="A/B content experiments with weighted variation serving and view analytics",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# CORS: content and track-view are called by embed scripts on arbitrary host
# pages, so every origin is allowed and credentials are not.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Trace-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining"]
)

# Logging middleware
app.add_middleware(LoggingMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 Bad Request."""
    logger.warning("request_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())}
    )


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(experiments.router, tags=["experiments"])
app.include_router(analytics.router, tags=["analytics"])
app.include_router(embed.router, tags=["embed"])


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "service": "SplitLab",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else "disabled",
        "endpoints": {
            "health": "/health",
            "experiments": "/experiments",
            "content": "GET /content/{experiment_id}",
            "track_view": "POST /track-view/{experiment_id}",
            "embed": "GET /embed/{experiment_id}"
        }
    }


# uvicorn splitlab.main:app --reload
