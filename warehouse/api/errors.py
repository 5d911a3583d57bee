from fastapi import HTTPException, status

from warehouse.exceptions import (
    ConflictError,
    EngineBusyError,
    InvalidTransitionError,
    InventoryError,
    TransportError,
    ValidationError,
)


def to_http_exception(error: InventoryError) -> HTTPException:
    """Map a stock-in service error to the HTTP error returned to the UI."""
    if isinstance(error, (ConflictError, InvalidTransitionError, EngineBusyError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, TransportError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(error))
