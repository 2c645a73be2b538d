# carrental/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from carrental.database import get_db
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
