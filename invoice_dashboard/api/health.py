from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..db.engine_sync import get_sync_session

router = APIRouter()


@router.get("/health", tags=["System"])
def get_system_health(request: Request, session: Session = Depends(get_sync_session)):
    """
    Returns the system health status including:
    - Database reachability
    - Whether SMTP is configured for reminders
    """
    try:
        session.exec(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        database = f"error: {e}"

    email_service = getattr(request.app.state, "email_service", None)
    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "email_configured": bool(email_service and email_service.is_configured),
    }
