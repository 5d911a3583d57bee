class InventoryError(Exception):
    """Base exception for the stock-in service."""
    pass


class ValidationError(InventoryError):
    """Raised when a submission is rejected before any network call."""
    pass


class ConflictError(ValidationError):
    """Raised when a product barcode is already used by another record."""
    pass


class TransportError(InventoryError):
    """Raised when the persistence service is unreachable or answers with a failure."""
    pass


class InvalidTransitionError(InventoryError):
    """Raised when an operation is not allowed in the current stock-in phase."""
    pass


class EngineBusyError(InventoryError):
    """Raised when another stock-in operation is already in flight."""
    pass
