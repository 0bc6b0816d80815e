# modules/payments/repository.py
from typing import Any, Dict, List, Union
from uuid import UUID

import structlog
from supabase import AsyncClient

from core.database import execute
from core.errors import NotFoundError, ReferentialIntegrityError
from core.money import to_wire
from modules.patient.service import PatientDirectory
from modules.payments.schemas import Payment, PaymentInput, PaymentUpdate, validate_input

logger = structlog.get_logger(__name__)

PAYMENTS_TABLE = "payments"


def _payment_key(payment_id: Union[str, UUID]) -> str:
    # a malformed id names no payment
    try:
        return str(UUID(str(payment_id)))
    except ValueError:
        raise NotFoundError("payment", str(payment_id))


class LedgerRepository:
    """
    Durable store of Payment records, backed only by the `payments` table.

    Every call goes to the database; nothing is cached between calls, so a
    write that has returned is visible to the next read. Concurrent updates
    to the same payment are last-write-wins.
    """

    def __init__(self, client: AsyncClient, patients: PatientDirectory):
        self.client = client
        self.patients = patients

    def _table(self):
        return self.client.table(PAYMENTS_TABLE)

    async def create(self, payment: Union[PaymentInput, Dict[str, Any]]) -> Payment:
        payment = validate_input(PaymentInput, payment)

        if not await self.patients.exists(payment.patient_id):
            raise ReferentialIntegrityError(f"patient '{payment.patient_id}' does not exist")

        rows = await execute(self._table().insert(payment.to_row()), operation="create_payment", write=True)
        created = Payment.model_validate(rows[0])
        logger.info(
            "payment_created",
            payment_id=str(created.id),
            patient_id=created.patient_id,
            amount=to_wire(created.amount),
            method=created.payment_method,
        )
        return created

    async def get(self, payment_id: str) -> Payment:
        key = _payment_key(payment_id)
        rows = await execute(
            self._table().select("*").eq("id", key).limit(1),
            operation="get_payment",
        )
        if not rows:
            raise NotFoundError("payment", key)
        return Payment.model_validate(rows[0])

    async def update(self, payment_id: str, fields: Union[PaymentUpdate, Dict[str, Any]]) -> Payment:
        key = _payment_key(payment_id)
        changes = validate_input(PaymentUpdate, fields)

        rows = await execute(
            self._table().update(changes.to_row()).eq("id", key),
            operation="update_payment",
            write=True,
        )
        if not rows:
            raise NotFoundError("payment", key)
        updated = Payment.model_validate(rows[0])
        logger.info(
            "payment_updated",
            payment_id=str(updated.id),
            patient_id=updated.patient_id,
            fields=sorted(changes.model_fields_set),
        )
        return updated

    async def delete(self, payment_id: str) -> None:
        key = _payment_key(payment_id)
        rows = await execute(
            self._table().delete().eq("id", key),
            operation="delete_payment",
            write=True,
        )
        if not rows:
            raise NotFoundError("payment", key)
        logger.info("payment_deleted", payment_id=key, patient_id=rows[0].get("patient_id"))

    async def list_by_patient(self, patient_id: str) -> List[Payment]:
        return await self._list("patient_id", patient_id, operation="list_payments_by_patient")

    async def list_by_lab_work(self, lab_work_id: str) -> List[Payment]:
        return await self._list("lab_work_id", str(lab_work_id), operation="list_payments_by_lab_work")

    async def _list(self, column: str, value: str, operation: str) -> List[Payment]:
        # newest payment first; same-day entries by recording time, id breaks exact ties
        query = (
            self._table()
            .select("*")
            .eq(column, value)
            .order("payment_date", desc=True)
            .order("created_at", desc=True)
            .order("id", desc=True)
        )
        rows = await execute(query, operation=operation)
        return [Payment.model_validate(r) for r in rows]
