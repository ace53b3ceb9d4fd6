from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ...core.exceptions import InvalidArgumentError, NotFoundError, StoreUnavailableError
from ...db.engine_sync import get_sync_session
from ...services.client_service import ClientService
from ...services.final_amount_service import FinalAmountService
from ...services.payment_service import PaymentService
from .models import (
    ClientSyncResult,
    OverdueSweepResult,
    Payment,
    PaymentCreate,
    PaymentUpdate,
    PaymentWithClient,
    SyncResult,
)

router = APIRouter()


# --- Dependency Injectors ---
def get_final_amount_service(session: Session = Depends(get_sync_session)) -> FinalAmountService:
    return FinalAmountService(session)


def get_payment_service(
    session: Session = Depends(get_sync_session),
    final_amounts: FinalAmountService = Depends(get_final_amount_service),
) -> PaymentService:
    return PaymentService(session, final_amounts)


def get_client_service(session: Session = Depends(get_sync_session)) -> ClientService:
    return ClientService(session)


# --- Payment Endpoints ---
# Static paths are declared before /payments/{payment_id}.


@router.get("/payments", response_model=list[PaymentWithClient])
def api_get_all_payments(service: PaymentService = Depends(get_payment_service)):
    return service.get_all_payments()


@router.get("/payments/overdue/list", response_model=list[PaymentWithClient])
def api_get_overdue_payments(service: PaymentService = Depends(get_payment_service)):
    return service.get_overdue_payments()


@router.post("/payments/update-overdue", response_model=OverdueSweepResult)
def api_update_overdue_status(service: PaymentService = Depends(get_payment_service)):
    """
    Mark past-due pending payments as overdue and resync every client's final amount.
    """
    try:
        updated = service.mark_overdue_payments()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "updated": updated,
        "message": f"Updated {updated} payments to overdue status",
    }


@router.post("/payments/sync-final-amounts", response_model=SyncResult)
def api_sync_final_amounts(
    final_amounts: FinalAmountService = Depends(get_final_amount_service),
    client_service: ClientService = Depends(get_client_service),
):
    """Recompute the final amount of every client from its pending payments."""
    try:
        synced = final_amounts.sync_all()
        total = len(client_service.get_all())
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "total_clients": total,
        "synced": synced,
        "failed": max(total - synced, 0),
        "message": f"Final amounts synchronized for {synced} clients",
    }


@router.get("/payments/{payment_id}", response_model=PaymentWithClient)
def api_get_payment(payment_id: int, service: PaymentService = Depends(get_payment_service)):
    try:
        return service.get_payment_by_id(payment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/payments", response_model=Payment, status_code=status.HTTP_201_CREATED)
def api_create_payment(
    payment: PaymentCreate,
    service: PaymentService = Depends(get_payment_service),
):
    """
    Register a payment. The client's final amount is recomputed before responding.
    """
    try:
        return service.create_payment(payment.model_dump())
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/payments/{payment_id}", response_model=Payment)
def api_update_payment(
    payment_id: int,
    payment_update: PaymentUpdate,
    service: PaymentService = Depends(get_payment_service),
):
    try:
        return service.update_payment(payment_id, payment_update.model_dump(exclude_unset=True))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_payment(payment_id: int, service: PaymentService = Depends(get_payment_service)):
    try:
        service.delete_payment(payment_id)
        return
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/payments/{payment_id}/sync", response_model=ClientSyncResult)
def api_sync_payment_client(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
    final_amounts: FinalAmountService = Depends(get_final_amount_service),
):
    """
    Recompute and read back the final amount of the client owning this payment.
    """
    try:
        payment = service.get_by_id(payment_id)
        client_id = payment.client_id
        final_amount = final_amounts.recompute_and_verify(client_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"client_id": client_id, "final_amount": final_amount}
