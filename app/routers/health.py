"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db


router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)) -> JSONResponse:
    """Health check endpoint for monitoring.

    Returns:
        JSON response with health status of the database; 503 when it is unreachable.
    """
    health_status: dict[str, Any] = {
        "status": "healthy",
        "service": get_settings().service_name,
        "components": {
            "database": "healthy",
        },
    }

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        health_status["status"] = "unhealthy"
        health_status["components"]["database"] = "unhealthy"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(status_code=status_code, content=health_status)
