import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ...core.exceptions import InvalidArgumentError, NotFoundError, StoreUnavailableError
from ...db.engine_sync import get_sync_session

# Import service classes
from ...services.client_service import ClientService
from ...services.final_amount_service import FinalAmountService
from ...services.payment_service import PaymentService
from .models import (
    Client,
    ClientCreate,
    ClientPayment,
    ClientUpdate,
    ClientWithTotals,
    DashboardSummary,
    FinalAmountOverride,
)

router = APIRouter()


# --- Dependency Injectors ---
def get_client_service(session: Session = Depends(get_sync_session)) -> ClientService:
    return ClientService(session)


def get_payment_service(session: Session = Depends(get_sync_session)) -> PaymentService:
    return PaymentService(session)


def get_final_amount_service(session: Session = Depends(get_sync_session)) -> FinalAmountService:
    return FinalAmountService(session)


# --- Client Endpoints ---


@router.get("/clients", response_model=list[ClientWithTotals])
def api_get_all_clients(service: ClientService = Depends(get_client_service)):
    return service.get_all_clients()


@router.get("/clients/summary", response_model=DashboardSummary)
def api_get_dashboard_summary(service: ClientService = Depends(get_client_service)):
    """Totals for the dashboard header: clients, pending, overdue."""
    return service.get_summary()


@router.get("/clients/{client_id}", response_model=Client)
def api_get_client(
    client_id: uuid.UUID,
    service: ClientService = Depends(get_client_service),
):
    try:
        return service.get_client_by_id(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/clients", response_model=Client, status_code=status.HTTP_201_CREATED)
def api_create_client(
    client: ClientCreate,
    service: ClientService = Depends(get_client_service),
):
    try:
        return service.create_client(client.model_dump())
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/clients/{client_id}", response_model=Client)
def api_update_client(
    client_id: uuid.UUID,
    client_update: ClientUpdate,
    service: ClientService = Depends(get_client_service),
):
    update_fields = client_update.model_dump(exclude_unset=True)
    try:
        return service.update_client(client_id, update_fields)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/clients/{client_id}/final-amount", response_model=Client)
def api_override_final_amount(
    client_id: uuid.UUID,
    payload: FinalAmountOverride,
    final_amounts: FinalAmountService = Depends(get_final_amount_service),
    service: ClientService = Depends(get_client_service),
):
    """
    Manually set the final amount. The next payment change for this client
    recomputes it and discards the override.
    """
    try:
        final_amounts.override_final_amount(client_id, payload.final_amount)
        return service.get_client_by_id(client_id)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_client(
    client_id: uuid.UUID,
    service: ClientService = Depends(get_client_service),
):
    try:
        service.delete_client(client_id)
        return
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/clients/{client_id}/payments", response_model=list[ClientPayment])
def api_get_client_payments(
    client_id: uuid.UUID,
    client_service: ClientService = Depends(get_client_service),
    payment_service: PaymentService = Depends(get_payment_service),
):
    try:
        client_service.get_by_id(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return payment_service.get_payments_for_client(client_id)
