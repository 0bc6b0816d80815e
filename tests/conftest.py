import asyncio
import os
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

from core.deps import get_client  # noqa: E402
from modules.clinical.service import ClinicalRecords  # noqa: E402
from modules.ledger.service import BalanceCalculator  # noqa: E402
from modules.patient.service import PatientDirectory  # noqa: E402
from modules.payments.repository import LedgerRepository  # noqa: E402

EPOCH = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable stand-in for a postgrest-py async request builder."""

    def __init__(self, store: "FakeSupabase", table: str):
        self.store = store
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.orders: List[tuple] = []
        self.row_limit: Optional[int] = None

    def select(self, columns: str = "*"):
        self.op = "select"
        return self

    def insert(self, row: Dict[str, Any]):
        self.op, self.payload = "insert", dict(row)
        return self

    def update(self, fields: Dict[str, Any]):
        self.op, self.payload = "update", dict(fields)
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append((column, value))
        return self

    def order(self, column: str, *, desc: bool = False):
        self.orders.append((column, desc))
        return self

    def limit(self, count: int):
        self.row_limit = count
        return self

    async def execute(self):
        self.store.calls.append((self.table_name, self.op))
        failure = self.store.failures.pop(self.table_name, None)
        if failure is not None:
            raise failure
        delay = self.store.slow.get(self.table_name, self.store.delay)
        if delay:
            await asyncio.sleep(delay)
        return FakeResponse(self.store.run(self))


class FakeSupabase:
    """
    In-memory tables behind the same call chain the repository uses.

    Enforces the payments constraints (foreign keys, amount > 0), applies the
    foreign keys' ON DELETE actions, and returns numeric columns as JSON
    numbers, the way PostgREST does.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "patients": [],
            "treatments": [],
            "lab_work": [],
            "payments": [],
        }
        self.failures: Dict[str, Exception] = {}
        self.calls: List[tuple] = []
        self.delay = 0.0
        self.slow: Dict[str, float] = {}
        self._clock = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # seeding helpers

    def add_patient(self, patient_id: str, full_name: str = "Test Patient") -> None:
        self.tables["patients"].append({"id": str(uuid.uuid4()), "patient_id": patient_id, "full_name": full_name})

    def add_treatment(self, patient_id: str, cost: Optional[str]) -> str:
        row_id = str(uuid.uuid4())
        self.tables["treatments"].append({"id": row_id, "patient_id": patient_id, "treatment_cost": _number(cost)})
        return row_id

    def add_lab_work(self, patient_id: str, cost: Optional[str]) -> str:
        row_id = str(uuid.uuid4())
        self.tables["lab_work"].append({"id": row_id, "patient_id": patient_id, "cost": _number(cost)})
        return row_id

    def fail_next(self, table: str, exc: Exception) -> None:
        self.failures[table] = exc

    # query execution

    def _now(self) -> str:
        self._clock += 1
        return (EPOCH + timedelta(seconds=self._clock)).isoformat()

    def run(self, query: FakeQuery) -> List[Dict[str, Any]]:
        rows = self.tables[query.table_name]
        if query.op == "insert":
            return [self._insert(query.table_name, query.payload)]

        matched = [r for r in rows if all(str(r.get(c)) == str(v) for c, v in query.filters)]
        if query.op == "update":
            if "amount" in query.payload:
                self._check_amount(query.payload["amount"])
                query.payload["amount"] = _number(query.payload["amount"])
            for row in matched:
                row.update(query.payload)
                row["updated_at"] = self._now()
            return [dict(r) for r in matched]
        if query.op == "delete":
            for row in matched:
                rows.remove(row)
                self._on_delete(query.table_name, row)
            return [dict(r) for r in matched]

        result = [dict(r) for r in matched]
        for column, desc in reversed(query.orders):
            result.sort(key=lambda r: str(r.get(column)), reverse=desc)
        if query.row_limit is not None:
            result = result[: query.row_limit]
        return result

    def _on_delete(self, table: str, row: Dict[str, Any]) -> None:
        payments = self.tables["payments"]
        if table == "patients":
            # ON DELETE CASCADE
            payments[:] = [p for p in payments if p["patient_id"] != row["patient_id"]]
        for column, parent in (("treatment_id", "treatments"), ("lab_work_id", "lab_work")):
            if table == parent:
                # ON DELETE SET NULL
                for p in payments:
                    if p.get(column) == row["id"]:
                        p[column] = None

    def _insert(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if table != "payments":
            self.tables[table].append(dict(payload))
            return dict(payload)

        if not any(p["patient_id"] == payload["patient_id"] for p in self.tables["patients"]):
            raise _fk_error("payments_patient_id_fkey")
        for column, parent in (("treatment_id", "treatments"), ("lab_work_id", "lab_work")):
            if payload.get(column) and not any(r["id"] == payload[column] for r in self.tables[parent]):
                raise _fk_error(f"payments_{column}_fkey")
        self._check_amount(payload["amount"])

        now = self._now()
        row = {
            "id": str(uuid.uuid4()),
            "treatment_id": None,
            "lab_work_id": None,
            "payment_method": "cash",
            "notes": None,
            **payload,
            "amount": _number(payload["amount"]),
            "created_at": now,
            "updated_at": now,
        }
        self.tables["payments"].append(row)
        return dict(row)

    @staticmethod
    def _check_amount(amount: Any) -> None:
        if Decimal(str(amount)) <= 0:
            raise APIError({
                "code": "23514",
                "message": 'new row for relation "payments" violates check constraint "payments_amount_check"',
                "details": None,
                "hint": None,
            })


def _number(value: Optional[str]) -> Optional[float]:
    return None if value is None else float(value)


def _fk_error(constraint: str) -> APIError:
    return APIError({
        "code": "23503",
        "message": f'insert or update on table "payments" violates foreign key constraint "{constraint}"',
        "details": None,
        "hint": None,
    })


@pytest.fixture()
def store() -> FakeSupabase:
    fake = FakeSupabase()
    fake.add_patient("PT-001", "Asha Rao")
    return fake


@pytest.fixture()
def patients(store) -> PatientDirectory:
    return PatientDirectory(store)


@pytest.fixture()
def clinical(store) -> ClinicalRecords:
    return ClinicalRecords(store)


@pytest.fixture()
def ledger(store, patients) -> LedgerRepository:
    return LedgerRepository(store, patients)


@pytest.fixture()
def calculator(ledger, clinical) -> BalanceCalculator:
    return BalanceCalculator(ledger, clinical)


@pytest.fixture()
def api_client(store):
    import main

    main.app.dependency_overrides[get_client] = lambda: store
    with TestClient(main.app) as client:
        yield client
    main.app.dependency_overrides.clear()
