# main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
import uvicorn

from config.settings import get_settings
from core.errors import (
    LedgerError,
    LedgerIOError,
    NotFoundError,
    ReferentialIntegrityError,
    UNCERTAIN,
    ValidationError,
)
from core.logging import configure_logging

# === IMPORT ALL ROUTERS ===
from modules.payments.routes import router as payments_router
from modules.ledger.routes import router as ledger_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL, settings.JSON_LOGS)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Dental Clinic Ledger",
    version="1.0.0",
    description="Patient payments • Balances • Lab-work reconciliation"
)

# === CORS: Allow frontend to call backend ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === ERROR MAPPING ===
STATUS_BY_ERROR = {
    ValidationError: 422,
    NotFoundError: 404,
    ReferentialIntegrityError: 409,
}

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    body = {"error": exc.kind, "detail": exc.detail}
    if isinstance(exc, LedgerIOError):
        body["outcome"] = exc.outcome
        status_code = 504 if exc.outcome == UNCERTAIN else 503
    else:
        status_code = next((code for cls, code in STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500)

    logger.info("request_failed", method=request.method, path=request.url.path, status=status_code, error=exc.kind)
    return JSONResponse(status_code=status_code, content=body)

# === INCLUDE ROUTERS ===
app.include_router(payments_router)
app.include_router(ledger_router)

@app.get("/health")
async def health():
    return {"status": "ok"}

# === Run with uvicorn ===
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
