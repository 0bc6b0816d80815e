# modules/ledger/schemas.py
from decimal import Decimal
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, PlainSerializer

from core.money import to_wire

Money = Annotated[Decimal, PlainSerializer(to_wire, return_type=str, when_used="json")]

class BalanceStatus(str, Enum):
    OUTSTANDING = "outstanding"
    PAID = "paid"
    OVERPAID = "overpaid"

    @classmethod
    def of(cls, balance: Decimal) -> "BalanceStatus":
        if balance > 0:
            return cls.OUTSTANDING
        if balance < 0:
            return cls.OVERPAID
        return cls.PAID

class PaymentSummary(BaseModel):
    patient_id: str
    total_cost: Money
    total_paid: Money
    balance: Money
    status: BalanceStatus

class LabWorkSummary(BaseModel):
    lab_work_id: UUID
    total_cost: Money
    total_paid: Money
    balance: Money
    status: BalanceStatus
