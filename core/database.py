# core/database.py
import asyncio
from typing import Any, Dict, List, Optional

import httpx
import structlog
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from config.settings import get_settings
from core.errors import (
    LedgerIOError,
    NOT_APPLIED,
    ReferentialIntegrityError,
    UNCERTAIN,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# Postgres SQLSTATE codes surfaced by PostgREST
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"
INVALID_TEXT_REPRESENTATION = "22P02"

_client: Optional[AsyncClient] = None
_client_lock = asyncio.Lock()


async def get_supabase() -> AsyncClient:
    """Return the process-wide Supabase client, creating it on first use."""
    global _client
    if _client is None:
        async with _client_lock:
            if _client is None:
                settings = get_settings()
                _client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                logger.info("supabase_client_created", url=settings.SUPABASE_URL)
    return _client


async def execute(query, operation: str, write: bool = False, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
    """
    Run a PostgREST query builder and return its rows.

    Every store failure is translated into the ledger error taxonomy here,
    so callers only ever see LedgerError subclasses. A write that fails after
    the request may have reached the server is reported as `uncertain`.
    """
    if timeout is None:
        timeout = get_settings().QUERY_TIMEOUT_SECONDS
    late_outcome = UNCERTAIN if write else NOT_APPLIED

    try:
        response = await asyncio.wait_for(query.execute(), timeout=timeout)
    except APIError as exc:
        raise translate_api_error(exc, operation) from exc
    except asyncio.TimeoutError as exc:
        logger.error("store_timeout", operation=operation, timeout=timeout, outcome=late_outcome)
        raise LedgerIOError(f"{operation} timed out after {timeout}s", outcome=late_outcome, cause=exc)
    except (httpx.ConnectError, httpx.ConnectTimeout) as exc:
        logger.error("store_unreachable", operation=operation, error=str(exc))
        raise LedgerIOError(f"{operation} failed: store unreachable", outcome=NOT_APPLIED, cause=exc)
    except httpx.HTTPError as exc:
        logger.error("store_transport_error", operation=operation, error=str(exc), outcome=late_outcome)
        raise LedgerIOError(f"{operation} failed: {exc}", outcome=late_outcome, cause=exc)

    return response.data or []


def translate_api_error(exc: APIError, operation: str) -> Exception:
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)

    if code == FOREIGN_KEY_VIOLATION:
        logger.warning("store_fk_violation", operation=operation, detail=message)
        return ReferentialIntegrityError(f"{operation}: {message}")
    if code in (CHECK_VIOLATION, NOT_NULL_VIOLATION, INVALID_TEXT_REPRESENTATION):
        logger.warning("store_rejected_input", operation=operation, code=code, detail=message)
        return ValidationError(f"{operation}: {message}")

    logger.error("store_api_error", operation=operation, code=code, detail=message)
    return LedgerIOError(f"{operation} rejected by store: {message}", outcome=NOT_APPLIED, cause=exc)
