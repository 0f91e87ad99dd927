from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from resumatch.routers import auth, resumes, jobs, health

# Import logging and middleware
from resumatch.utils.config import APP_VERSION, RATE_LIMIT_PER_MINUTE
from resumatch.utils.logging_config import configure_for_environment, get_logger
from resumatch.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
    RateLimitMiddleware,
    register_exception_handlers,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    # Startup
    logger.info("Resumatch API starting up...")
    logger.info("Initializing database indexes...")

    try:
        from resumatch.services.db import init_indexes
        await init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    logger.info("Resumatch API startup completed")

    yield

    # Shutdown
    logger.info("Resumatch API shutting down...")

app = FastAPI(title="Resumatch API", version=APP_VERSION, lifespan=lifespan)
register_exception_handlers(app)

# Starlette wraps each added middleware around the previous ones, so the last
# one added runs first. The exception handler sits closest to the routes.
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RateLimitMiddleware, limit=RATE_LIMIT_PER_MINUTE)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
@app.head("/")
async def root():
    logger.debug("Root endpoint accessed")
    return {"message": "Welcome to the Resumatch API", "version": APP_VERSION, "status": "ok"}

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(resumes.router, prefix="/api", tags=["resumes"])
app.include_router(jobs.router, prefix="/api", tags=["jobs"])
app.include_router(health.router, tags=["health"])

logger.info("Resumatch API initialized successfully")
