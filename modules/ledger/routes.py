# modules/ledger/routes.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from core.deps import get_balance_calculator, get_clinical_records, get_ledger_repository, get_patient_directory
from core.errors import NotFoundError
from modules.clinical.service import ClinicalRecords
from modules.ledger.schemas import LabWorkSummary, PaymentSummary
from modules.ledger.service import BalanceCalculator
from modules.patient.service import PatientDirectory
from modules.payments.repository import LedgerRepository
from modules.payments.schemas import Payment

router = APIRouter(tags=["Ledger"])

async def _require_patient(patient_id: str, patients: PatientDirectory) -> None:
    # an unknown patient must not render as "no payments yet"
    if not await patients.exists(patient_id):
        raise NotFoundError("patient", patient_id)

@router.get("/patients/{patient_id}/payments", response_model=List[Payment])
async def list_patient_payments(
    patient_id: str,
    patients: PatientDirectory = Depends(get_patient_directory),
    ledger: LedgerRepository = Depends(get_ledger_repository),
):
    await _require_patient(patient_id, patients)
    return await ledger.list_by_patient(patient_id)

@router.get("/patients/{patient_id}/summary", response_model=PaymentSummary)
async def get_patient_summary(
    patient_id: str,
    patients: PatientDirectory = Depends(get_patient_directory),
    calculator: BalanceCalculator = Depends(get_balance_calculator),
):
    await _require_patient(patient_id, patients)
    return await calculator.summarize_patient(patient_id)

@router.get("/lab-work/{lab_work_id}/payments", response_model=List[Payment])
async def list_lab_work_payments(
    lab_work_id: UUID,
    clinical: ClinicalRecords = Depends(get_clinical_records),
    ledger: LedgerRepository = Depends(get_ledger_repository),
):
    # 404 for an unknown lab-work order
    await clinical.get_lab_work_cost(str(lab_work_id))
    return await ledger.list_by_lab_work(str(lab_work_id))

@router.get("/lab-work/{lab_work_id}/summary", response_model=LabWorkSummary)
async def get_lab_work_summary(
    lab_work_id: UUID,
    clinical: ClinicalRecords = Depends(get_clinical_records),
    calculator: BalanceCalculator = Depends(get_balance_calculator),
):
    total_cost = await clinical.get_lab_work_cost(str(lab_work_id))
    return await calculator.summarize_lab_work(str(lab_work_id), total_cost)
