import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from resumatch.models.response import MetaResponse
from resumatch.services import db
from resumatch.utils.config import APP_VERSION, ENVIRONMENT
from resumatch.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)

START_TIME = time.time()


@router.get("/health")
@router.head("/health")
async def health_check():
    """Liveness plus a database ping"""
    try:
        await db.ping()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "message": "Database connection failed"})
    return {"status": "ok"}


@router.get("/api/_meta", response_model=MetaResponse)
async def meta():
    return MetaResponse(version=APP_VERSION, uptime=int(time.time() - START_TIME), environment=ENVIRONMENT)
