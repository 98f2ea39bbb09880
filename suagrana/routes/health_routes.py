import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from suagrana.config import settings
from suagrana.database import get_db
from suagrana.models.base import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/live")
def liveness():
    return {"success": True, "data": {"status": "alive", "timestamp": utcnow().isoformat()}}


@router.get("/ready")
def readiness(db: Session = Depends(get_db)):
    """Ready when the database answers a trivial query"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Readiness check failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "error": {"code": "SERVICE_UNAVAILABLE", "message": "Database unavailable"},
            },
        )
    return {
        "success": True,
        "data": {"status": "ready", "database": "ok", "version": settings.APP_VERSION},
    }
