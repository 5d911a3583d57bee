import enum
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from warehouse.schemas.product import ProductId, ProductRecord


class StockInPhase(str, enum.Enum):
    """Phases of the scan-driven stock-in interaction."""
    IDLE = "idle"
    RESOLVING = "resolving"
    EDITING_EXISTING = "editing_existing"
    CREATING_NEW = "creating_new"
    VALIDATING = "validating"
    COMMITTING = "committing"


class ProductForm(BaseModel):
    """The working form the user edits before a commit."""
    id: Optional[ProductId] = None
    box_barcode: str = ""
    product_barcode: str = ""
    name: str = ""
    spec: str = ""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_record(cls, record: ProductRecord) -> "ProductForm":
        return cls(
            id=record.id,
            box_barcode=record.box_barcode or "",
            product_barcode=record.product_barcode,
            name=record.name,
            spec=record.spec or "",
        )


class StockInState(BaseModel):
    """
    Application state of the stock-in controller.

    Only the reconciliation engine creates new values of this type; each
    transition replaces the whole value.
    """
    phase: StockInPhase = StockInPhase.IDLE
    form: ProductForm = Field(default_factory=ProductForm)
    quantity: int = 0
    editable: bool = False
    loaded: Optional[ProductRecord] = None

    model_config = ConfigDict(frozen=True)


class ScanRequest(BaseModel):
    """Schema for a barcode scan."""
    barcode: str = Field(..., description="Scanned product or box barcode")
    create_if_missing: bool = Field(
        False, description="Answer to the 'create a new product?' prompt"
    )


class FormUpdate(BaseModel):
    """Schema for editing the working form. Only provided fields are changed."""
    box_barcode: Optional[str] = None
    product_barcode: Optional[str] = None
    name: Optional[str] = None
    spec: Optional[str] = None
    quantity: Optional[int] = Field(None, description="Quantity to add to current stock")

    def field_changes(self) -> dict:
        changes = self.model_dump(exclude_unset=True, exclude={"quantity"})
        return {field: value for field, value in changes.items() if value is not None}


class StockInResult(BaseModel):
    """Outcome of a stock-in operation."""
    state: StockInState
    message: Optional[str] = None
    product: Optional[ProductRecord] = None


class NotificationLevel(str, enum.Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A user-visible message."""
    level: NotificationLevel
    message: str
    created_at: datetime
