import uuid
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from ...core.exceptions import InvalidArgumentError, NotFoundError, StoreUnavailableError
from ...db.engine_sync import get_sync_session
from ...services.email_service import EmailService, ReminderResult
from ...services.reminder_service import ReminderService
from .models import (
    BulkReminderResponse,
    EmailLogEntry,
    EmailTestRequest,
    ReminderResponse,
)

router = APIRouter()


# --- Dependency Injectors ---
def get_email_service(request: Request) -> EmailService:
    """The EmailService built at startup (see main.py)."""
    return request.app.state.email_service


def get_reminder_service(
    session: Session = Depends(get_sync_session),
    email_service: EmailService = Depends(get_email_service),
) -> ReminderService:
    return ReminderService(session, email_service)


def _reminder_response(result: ReminderResult, ok_message: str):
    if result.success:
        return {"success": True, "message": ok_message, "message_id": result.message_id}
    # Delivery failures are a flagged result, reported with a 500 status
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Failed to send email", "error": result.error},
    )


# --- Email Endpoints ---


@router.post("/email/send-reminder/{payment_id}", response_model=ReminderResponse)
def api_send_payment_reminder(
    payment_id: int,
    service: ReminderService = Depends(get_reminder_service),
):
    try:
        result = service.send_payment_reminder(payment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _reminder_response(result, "Payment reminder sent successfully")


@router.post("/email/send-client-reminder/{client_id}", response_model=ReminderResponse)
def api_send_client_reminder(
    client_id: uuid.UUID,
    service: ReminderService = Depends(get_reminder_service),
):
    """Remind a client of its final amount."""
    try:
        result = service.send_client_reminder(client_id)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _reminder_response(result, "Payment reminder sent successfully")


@router.post("/email/send-bulk-reminders", response_model=BulkReminderResponse)
def api_send_bulk_reminders(service: ReminderService = Depends(get_reminder_service)):
    """Send one reminder per overdue payment."""
    try:
        results = service.send_bulk_reminders()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    sent = sum(1 for r in results if r["success"])
    return {
        "success": True,
        "message": "Bulk reminders processed",
        "sent": sent,
        "failed": len(results) - sent,
        "results": results,
    }


@router.get("/email/logs/{client_id}", response_model=list[EmailLogEntry])
def api_get_email_logs(
    client_id: uuid.UUID,
    service: ReminderService = Depends(get_reminder_service),
):
    return service.get_email_logs(client_id)


@router.post("/email/test", response_model=ReminderResponse)
def api_send_test_email(
    payload: EmailTestRequest,
    email_service: EmailService = Depends(get_email_service),
):
    """Send a sample reminder to check the SMTP configuration."""
    if not payload.to or not payload.message:
        raise HTTPException(status_code=400, detail="Missing required fields: to, message")
    result = email_service.send_payment_reminder(
        payload.to, "Test Client", Decimal("100.00"), date.today(), payload.message
    )
    return _reminder_response(result, "Test email sent successfully")
