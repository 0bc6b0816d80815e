# modules/payments/routes.py
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from core.deps import get_ledger_repository
from modules.payments.repository import LedgerRepository
from modules.payments.schemas import Payment, PaymentInput, PaymentUpdate

router = APIRouter(prefix="/payments", tags=["Payments"])

@router.post("", response_model=Payment, status_code=status.HTTP_201_CREATED)
async def create_payment(payment: PaymentInput, ledger: LedgerRepository = Depends(get_ledger_repository)):
    return await ledger.create(payment)

@router.get("/{payment_id}", response_model=Payment)
async def get_payment(payment_id: UUID, ledger: LedgerRepository = Depends(get_ledger_repository)):
    return await ledger.get(str(payment_id))

@router.patch("/{payment_id}", response_model=Payment)
async def update_payment(
    payment_id: UUID,
    changes: PaymentUpdate,
    ledger: LedgerRepository = Depends(get_ledger_repository),
):
    return await ledger.update(str(payment_id), changes)

@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(payment_id: UUID, ledger: LedgerRepository = Depends(get_ledger_repository)):
    # confirmation happens client-side; this is final
    await ledger.delete(str(payment_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
