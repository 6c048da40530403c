from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from fintrack.config import LedgerSettings, load_settings
from fintrack.db.core import (
    LedgerStore,
    NotFoundError,
    ValidationError,
    UnknownReferenceError,
    ConflictError,
)
from fintrack.logging_config import setup_logging, get_logger
from fintrack.services.ledger import Ledger
from fintrack.services.sheet_mirror import SheetSink, build_sink
from fintrack.routers.accounts import router as accounts_router
from fintrack.routers.budgets import router as budgets_router
from fintrack.routers.categories import router as categories_router
from fintrack.routers.dashboard import router as dashboard_router
from fintrack.routers.debtors import router as debtors_router
from fintrack.routers.debts import router as debts_router
from fintrack.routers.expenses import router as expenses_router
from fintrack.routers.goals import router as goals_router
from fintrack.routers.incomes import router as incomes_router
from fintrack.routers.investment_accounts import router as investment_accounts_router
from fintrack.routers.investments import router as investments_router
from fintrack.routers.mirror_config import router as mirror_config_router
from fintrack.routers.net_worth import router as net_worth_router
from fintrack.routers.transfers import router as transfers_router

logger = get_logger(__name__)


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def create_app(settings: Optional[LedgerSettings] = None, sink: Optional[SheetSink] = None) -> FastAPI:
    """
    Build the HTTP app around one Ledger. The store, the mirror sink and the
    ledger are created here and shared by every request through app.state.
    """
    settings = settings or load_settings()
    store = LedgerStore(settings)
    store.create_all()
    ledger = Ledger(store, sink if sink is not None else build_sink(settings.spreadsheet_id, settings.google_credentials_file))

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        ledger.start()
        yield
        ledger.close()

    app = FastAPI(title="Fintrack Ledger", lifespan=lifespan)
    app.state.ledger = ledger

    app.add_exception_handler(ValidationError, _error_handler(status.HTTP_422_UNPROCESSABLE_ENTITY))
    app.add_exception_handler(UnknownReferenceError, _error_handler(status.HTTP_400_BAD_REQUEST))
    app.add_exception_handler(NotFoundError, _error_handler(status.HTTP_404_NOT_FOUND))
    app.add_exception_handler(ConflictError, _error_handler(status.HTTP_409_CONFLICT))

    app.include_router(accounts_router)
    app.include_router(investment_accounts_router)
    app.include_router(incomes_router)
    app.include_router(expenses_router)
    app.include_router(investments_router)
    app.include_router(transfers_router)
    app.include_router(debts_router)
    app.include_router(debtors_router)
    app.include_router(categories_router)
    app.include_router(budgets_router)
    app.include_router(goals_router)
    app.include_router(net_worth_router)
    app.include_router(dashboard_router)
    app.include_router(mirror_config_router)

    @app.get("/")
    def read_root():
        return "Server is running."

    return app


def run() -> None:
    setup_logging()
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
