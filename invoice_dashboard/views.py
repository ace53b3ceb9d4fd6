from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlmodel import Session

from .core.constants import STATUS_BADGE_COLORS, PaymentStatus
from .core.templates import templates
from .db.engine_sync import get_sync_session
from .services.client_service import ClientService
from .services.payment_service import PaymentService

router = APIRouter()


# --- Page Routes ---

@router.get("/", response_class=HTMLResponse, tags=["Pages"])
def read_dashboard(request: Request, session: Session = Depends(get_sync_session)):
    """Dashboard: totals, clients with their final amounts, and all payments."""
    client_service = ClientService(session)
    payment_service = PaymentService(session)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "active_page": "dashboard",
            "summary": client_service.get_summary(),
            "clients": client_service.get_all_clients(),
            "payments": payment_service.get_all_payments(),
            "statuses": list(PaymentStatus),
            "badge_colors": {status.value: color for status, color in STATUS_BADGE_COLORS.items()},
        },
    )
