# modules/clinical/service.py
from decimal import Decimal
from typing import List, Optional

from supabase import AsyncClient

from core.database import execute
from core.errors import NotFoundError
from core.money import from_store

class ClinicalRecords:
    """
    Cost amounts attached to treatments and lab-work orders.

    Costs are nullable: None means "not yet costed". They are returned as-is
    so the caller decides how to count them.
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    async def get_treatment_costs(self, patient_id: str) -> List[Optional[Decimal]]:
        rows = await execute(
            self.client.table("treatments").select("treatment_cost").eq("patient_id", patient_id),
            operation="get_treatment_costs",
        )
        return [_cost(r.get("treatment_cost")) for r in rows]

    async def get_lab_work_costs(self, patient_id: str) -> List[Optional[Decimal]]:
        rows = await execute(
            self.client.table("lab_work").select("cost").eq("patient_id", patient_id),
            operation="get_lab_work_costs",
        )
        return [_cost(r.get("cost")) for r in rows]

    async def get_lab_work_cost(self, lab_work_id: str) -> Optional[Decimal]:
        rows = await execute(
            self.client.table("lab_work").select("id, cost").eq("id", lab_work_id).limit(1),
            operation="get_lab_work_cost",
        )
        if not rows:
            raise NotFoundError("lab work", lab_work_id)
        return _cost(rows[0].get("cost"))

def _cost(value) -> Optional[Decimal]:
    return None if value is None else from_store(value)
