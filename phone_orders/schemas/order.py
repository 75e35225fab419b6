"""
Phone Orders — Pydantic Schemas

Tool payloads arrive in the dialogue agent's camelCase; the kitchen display
wire format is camelCase too.
"""
from decimal import Decimal
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    text = text.strip()
    return text or None


class SubmittedItem(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, examples=["General Tso's Chicken"])
    quantity: int = Field(1, ge=1)
    size: str | None = Field(None, examples=["Qt"])
    price: Decimal
    modifications: str | None = None

    @field_validator("size", "modifications", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        return _optional_text(value)


class SubmitOrderRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    phone_number: str = Field(..., min_length=1, examples=["607-555-1234"])
    items: list[SubmittedItem] = Field(..., min_length=1)
    notes: str | None = None
    total_price: Decimal

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: Any) -> str | None:
        return _optional_text(value)


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class OrderItemPayload(WireModel):
    name: str
    quantity: int
    size: str | None = None
    modifications: str = ""


class OrderPayload(WireModel):
    """Shape shared by new_order pushes and GET /api/orders."""
    order_number: str
    phone_number: str
    items: list[OrderItemPayload]
    notes: str = ""
    time: str
    updated_at: str | None = None
    total: float
    status: str


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., examples=["completed"])


class StatusUpdateResponse(WireModel):
    success: bool = True
    order_number: str
    status: str
