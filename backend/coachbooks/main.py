import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coachbooks.core.config import settings
from coachbooks.core.errors import LedgerError
from coachbooks.api.routes.audit import router as audit_router
from coachbooks.api.routes.bank_accounts import router as bank_accounts_router
from coachbooks.api.routes.expenses import router as expenses_router
from coachbooks.api.routes.journal import router as journal_router
from coachbooks.api.routes.missions import router as missions_router
from coachbooks.api.routes.movements import router as movements_router
from coachbooks.api.routes.payments import router as payments_router
from coachbooks.api.routes.quotes import router as quotes_router
from coachbooks.api.routes.recurring_expenses import router as recurring_expenses_router
from coachbooks.api.routes.schedules import router as schedules_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="coachbooks")

origins = [o.strip() for o in (settings.cors_origins or "").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 409:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.code, "message": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "internal_error"})


@app.get("/health")
@app.get("/api/health")
def health():
    return {"status": "ok"}

app.include_router(bank_accounts_router)
app.include_router(journal_router)
app.include_router(payments_router)
app.include_router(schedules_router)
app.include_router(expenses_router)
app.include_router(recurring_expenses_router)
app.include_router(missions_router)
app.include_router(movements_router)
app.include_router(quotes_router)
app.include_router(audit_router)
