"""
HTTP mapping for domain rejections.

Domain services raise SettlementError subclasses; this module turns them
into JSON responses with a status code chosen by error category:

    validation        -> 400
    not_found         -> 404
    forbidden         -> 403
    state_conflict    -> 409
    resource_conflict -> 409

The body is the error's to_dict(): detail, code and the structured payload
(pedido_id, valor_restante, ...).
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from shared.config.logging import get_logger
from rest_api.services.domain.errors import ErrorCategory, SettlementError

logger = get_logger(__name__)


STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCategory.STATE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCategory.RESOURCE_CONFLICT: status.HTTP_409_CONFLICT,
}


def status_for(exc: SettlementError) -> int:
    return STATUS_BY_CATEGORY.get(exc.category, status.HTTP_400_BAD_REQUEST)


async def settlement_error_handler(request: Request, exc: SettlementError) -> JSONResponse:
    """Log the rejection at WARNING and return its structured body."""
    status_code = status_for(exc)
    logger.warning(
        exc.message,
        status_code=status_code,
        code=exc.kind.value,
        path=request.url.path,
        **exc.payload,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SettlementError, settlement_error_handler)
