"""
Core Ledger API Application Factory
"""

from typing import Optional

from fastapi import FastAPI, Request
import uvicorn

from .accounts import router as accounts_router
from .dependencies import LedgerSystem
from .errors import install_error_handlers
from .transactions import router as transactions_router
from .. import __version__
from ..config import get_config
from ..context import CORRELATION_ID_HEADER, RequestContext
from ..logging_config import setup_logging


def create_app(system: Optional[LedgerSystem] = None) -> FastAPI:
    """
    Create and configure the FastAPI application

    Args:
        system: Ledger system to serve; built lazily from configuration
            on the first request when omitted
    """
    app = FastAPI(
        title="Core Ledger API",
        description="Account ledger with atomic, isolated balance updates",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.ledger_system = system

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        context = RequestContext.from_header(request.headers.get(CORRELATION_ID_HEADER))
        request.state.context = context
        response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = context.correlation_id
        return response

    install_error_handlers(app)

    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "core_ledger_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Core Ledger API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "accounts": "/accounts",
                "transactions": "/transactions",
            }
        }

    return app


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    uvicorn.run(
        "core_ledger.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
