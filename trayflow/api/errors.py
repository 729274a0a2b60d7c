"""Rendering of domain errors as typed JSON responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from trayflow.domain.shared.exceptions import DomainError, ErrorType

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_TYPE: dict[ErrorType, int] = {
    ErrorType.VALIDATION: 422,
    ErrorType.NOT_FOUND: 404,
    ErrorType.CONFLICT: 409,
    ErrorType.ROUTE_MISMATCH: 409,
    ErrorType.PENDING_STEP: 409,
    ErrorType.REPOSITORY: 500,
}


def status_for(error: DomainError) -> int:
    return STATUS_BY_ERROR_TYPE.get(error.error_type, status.HTTP_400_BAD_REQUEST)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    elif status_code == status.HTTP_409_CONFLICT:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
