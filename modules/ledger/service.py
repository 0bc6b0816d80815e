# modules/ledger/service.py
import asyncio
from decimal import Decimal
from typing import Optional, Union

import structlog

from core.money import from_store, total
from modules.clinical.service import ClinicalRecords
from modules.ledger.schemas import BalanceStatus, LabWorkSummary, PaymentSummary
from modules.payments.repository import LedgerRepository

logger = structlog.get_logger(__name__)

class BalanceCalculator:
    """
    Reconciles what a patient owes against what they have paid.

    Stateless: every call recomputes from the current treatment, lab-work and
    payment records and never writes anything back. A failed fetch fails the
    whole summary; a partial total is never returned.
    """

    def __init__(self, ledger: LedgerRepository, clinical: ClinicalRecords):
        self.ledger = ledger
        self.clinical = clinical

    async def summarize_patient(self, patient_id: str) -> PaymentSummary:
        fetches = [
            asyncio.ensure_future(self.clinical.get_treatment_costs(patient_id)),
            asyncio.ensure_future(self.clinical.get_lab_work_costs(patient_id)),
            asyncio.ensure_future(self.ledger.list_by_patient(patient_id)),
        ]
        try:
            treatment_costs, lab_work_costs, payments = await asyncio.gather(*fetches)
        except BaseException:
            # first failure wins; the other fetches are not left running
            for fetch in fetches:
                fetch.cancel()
            await asyncio.gather(*fetches, return_exceptions=True)
            raise

        # None is "not yet costed" and counts as zero
        total_cost = total(treatment_costs) + total(lab_work_costs)
        total_paid = total(p.amount for p in payments)
        balance = total_cost - total_paid

        logger.debug(
            "patient_summarized",
            patient_id=patient_id,
            treatments=len(treatment_costs),
            lab_work=len(lab_work_costs),
            payments=len(payments),
        )
        return PaymentSummary(
            patient_id=patient_id,
            total_cost=total_cost,
            total_paid=total_paid,
            balance=balance,
            status=BalanceStatus.of(balance),
        )

    async def summarize_lab_work(self, lab_work_id: str, total_cost: Optional[Union[Decimal, int, str]]) -> LabWorkSummary:
        """`total_cost` is the lab-work order's own cost field, supplied by the caller."""
        payments = await self.ledger.list_by_lab_work(lab_work_id)

        cost = from_store(total_cost)
        total_paid = total(p.amount for p in payments)
        balance = cost - total_paid

        return LabWorkSummary(
            lab_work_id=lab_work_id,
            total_cost=cost,
            total_paid=total_paid,
            balance=balance,
            status=BalanceStatus.of(balance),
        )
