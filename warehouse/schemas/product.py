from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Optional, Union


ProductId = Union[int, str]


class ProductBase(BaseModel):
    """Base schema for a product record with the fields shared by all variants."""
    box_barcode: Optional[str] = Field(
        "", alias="boxBarcode", description="Shipping container barcode (not unique)"
    )
    product_barcode: str = Field(
        ..., alias="productBarcode", description="Product barcode (unique)"
    )
    name: str = Field(..., description="Product name")
    spec: Optional[str] = Field("", description="Packaging / descriptive spec")
    stock: int = Field(0, ge=0, description="On-hand quantity (must be non-negative)")

    model_config = ConfigDict(populate_by_name=True)


class ProductCreate(ProductBase):
    """Body of a create request. The persistence service assigns the id."""

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class ProductRecord(ProductBase):
    """
    Product record as stored by the persistence service.

    The identifier travels as ``_id`` on the wire; ``id`` is accepted too.
    Unknown fields returned by the service are kept so that a full-record
    update sends them back untouched.
    """
    id: Optional[ProductId] = Field(
        None,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    def to_payload(self) -> dict:
        """Full-record body for an update request."""
        return self.model_dump(by_alias=True)


class ProductListResponse(BaseModel):
    """Schema for the filtered product listing."""
    items: List[ProductRecord]
    total: int
    search: str = ""
