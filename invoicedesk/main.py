from contextlib import asynccontextmanager
from typing import Any
import logging
import math

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from invoicedesk.config import get_settings
from invoicedesk.dependencies.services import (
    get_backend_client_cached,
    get_resend_client_cached,
    get_stripe_client_cached,
)
from invoicedesk.health import router as health_router
from invoicedesk.mock_data_view import router as mock_data_router
from invoicedesk.routers import clients, dashboard, email_domains, invoices, payments

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
SECRET_SETTINGS = {"backend_token", "resend_api_key", "stripe_secret_key"}


def configure_logging(level: int = logging.INFO) -> None:
    """Install a basic handler, or just raise the level if one exists."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level)
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "Starting %s with settings: %s",
        settings.app_name,
        settings.model_dump(exclude=SECRET_SETTINGS),
    )
    if settings.use_mock_data:
        logger.info("Serving from the in-memory mock store; browse it at /mock-data")

    providers = {
        "backend": get_backend_client_cached(),
        "resend": get_resend_client_cached(),
        "stripe": get_stripe_client_cached(),
    }
    try:
        yield
    finally:
        for name, provider in providers.items():
            logger.info("Closing %s client", name)
            await provider.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(title=settings.app_name, lifespan=lifespan, redirect_slashes=False)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return the usual 422 body even when the rejected input was NaN or infinite."""
    errors = _json_safe(jsonable_encoder(exc.errors()))
    logger.warning("Validation error for %s: %s", request.url.path, errors)
    return JSONResponse(status_code=422, content={"detail": errors})


app.include_router(clients.router, prefix="/clients", tags=["clients"])
app.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
app.include_router(email_domains.router, prefix="/email-domains", tags=["email-domains"])
app.include_router(payments.router, prefix="/payments", tags=["payments"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(health_router)
app.include_router(mock_data_router)
