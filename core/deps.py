# core/deps.py
from fastapi import Depends
from supabase import AsyncClient

from core.database import get_supabase
from modules.clinical.service import ClinicalRecords
from modules.ledger.service import BalanceCalculator
from modules.patient.service import PatientDirectory
from modules.payments.repository import LedgerRepository

async def get_client() -> AsyncClient:
    return await get_supabase()

def get_patient_directory(client: AsyncClient = Depends(get_client)) -> PatientDirectory:
    return PatientDirectory(client)

def get_clinical_records(client: AsyncClient = Depends(get_client)) -> ClinicalRecords:
    return ClinicalRecords(client)

def get_ledger_repository(
    client: AsyncClient = Depends(get_client),
    patients: PatientDirectory = Depends(get_patient_directory),
) -> LedgerRepository:
    return LedgerRepository(client, patients)

def get_balance_calculator(
    ledger: LedgerRepository = Depends(get_ledger_repository),
    clinical: ClinicalRecords = Depends(get_clinical_records),
) -> BalanceCalculator:
    return BalanceCalculator(ledger, clinical)
