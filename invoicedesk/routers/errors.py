from typing import NoReturn

from fastapi import HTTPException

from invoicedesk.services.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)


def raise_http_error(exc: ServiceError) -> NoReturn:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if isinstance(exc, ValidationFailedError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    raise HTTPException(status_code=502, detail=str(exc)) from exc
