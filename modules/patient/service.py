# modules/patient/service.py
from supabase import AsyncClient

from core.database import execute

class PatientDirectory:
    """Read-only view of the `patients` table, keyed by the human-readable patient_id."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def exists(self, patient_id: str) -> bool:
        rows = await execute(
            self.client.table("patients").select("patient_id").eq("patient_id", patient_id).limit(1),
            operation="patient_exists",
        )
        return len(rows) > 0
