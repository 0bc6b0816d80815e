# modules/payments/schemas.py
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic import ValidationError as SchemaError

from core.errors import ValidationError
from core.money import from_store, parse_amount, to_wire

def _positive_amount(value: Any) -> Decimal:
    try:
        amount = parse_amount(value)
    except ValidationError as exc:
        raise ValueError(exc.detail)
    if amount <= 0:
        raise ValueError("amount must be greater than 0")
    return amount

PositiveAmount = Annotated[Decimal, BeforeValidator(_positive_amount), PlainSerializer(to_wire, return_type=str, when_used="json")]
StoredAmount = Annotated[Decimal, BeforeValidator(from_store), PlainSerializer(to_wire, return_type=str, when_used="json")]

class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    CHECK = "check"

def _clean_notes(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None

class PaymentInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    patient_id: str = Field(min_length=1)
    amount: PositiveAmount
    payment_date: date = Field(default_factory=date.today)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None
    treatment_id: Optional[UUID] = None
    lab_work_id: Optional[UUID] = None

    @field_validator("patient_id")
    @classmethod
    def strip_patient_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("patient_id is required")
        return v

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return _clean_notes(v)

    @model_validator(mode="after")
    def single_source(self) -> "PaymentInput":
        if self.treatment_id is not None and self.lab_work_id is not None:
            raise ValueError("a payment offsets either a treatment or a lab-work order, not both")
        return self

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

class PaymentUpdate(BaseModel):
    """Mutable fields of a recorded payment. Date and patient linkage are fixed at creation."""

    model_config = ConfigDict(extra="forbid")

    amount: Optional[PositiveAmount] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return _clean_notes(v)

    @model_validator(mode="after")
    def non_empty(self) -> "PaymentUpdate":
        if not self.model_fields_set:
            raise ValueError("no fields to update")
        for name in ("amount", "payment_method"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)

class Payment(BaseModel):
    id: UUID
    patient_id: str
    treatment_id: Optional[UUID] = None
    lab_work_id: Optional[UUID] = None
    amount: StoredAmount
    payment_date: date
    payment_method: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

Model = TypeVar("Model", bound=BaseModel)

def validate_input(model: Type[Model], data: Union[Model, Dict[str, Any]]) -> Model:
    """Coerce caller input into `model`, reporting schema failures as ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payment'}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(problems) from exc
