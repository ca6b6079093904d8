"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ordering.order.order import Modality


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str | None = None
    number: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    postal_code: str | None = None
    complement: str | None = None


class CartLineSchema(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    image: str | None = None
    subtotal: float


class OrderLineSchema(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    image: str | None = None


class StatusChangeSchema(BaseModel):
    status: str
    changed_at: datetime
    changed_by: str | None = None


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = 1
    image: str | None = None
    expected_revision: int | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-pao-de-mel",
                    "name": "Pão de mel",
                    "unit_price": 6.5,
                    "quantity": 2,
                    "image": None,
                    "expected_revision": 3,
                }
            ]
        }
    }


class SetCartQuantityRequest(BaseModel):
    quantity: int
    expected_revision: int | None = None


class CheckoutRequest(BaseModel):
    modality: Modality
    scheduled_for: datetime | None = None
    phone: str | None = None
    address: AddressSchema | None = None
    note: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "modality": "delivery",
                    "scheduled_for": "2026-10-21T10:00:00-03:00",
                    "phone": "(16) 99123-4567",
                    "address": {
                        "street": "Rua Tibiriçá",
                        "number": "1000",
                        "neighborhood": "Centro",
                        "city": "Ribeirão Preto",
                        "postal_code": "14010-090",
                        "complement": None,
                    },
                    "note": "Sem açúcar de confeiteiro, por favor",
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(BaseModel):
    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "confirmado"}]}}


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class RevisionResponse(BaseModel):
    status: str = "ok"
    revision: int


class CartResponse(BaseModel):
    customer_id: str
    items: list[CartLineSchema]
    total: float
    unit_count: int
    revision: int


class RemovedLineSchema(BaseModel):
    product_id: str
    name: str
    reason: str


class PriceChangeSchema(BaseModel):
    product_id: str
    name: str
    old_price: float
    new_price: float


class ReconciliationResponse(BaseModel):
    changed: bool
    catalogue_unavailable: bool
    removed: list[RemovedLineSchema] = []
    price_changes: list[PriceChangeSchema] = []
    notices: list[str]
    product_ids: list[str]
    total: float
    revision: int


class PlacedOrderResponse(BaseModel):
    order_id: str
    number: str
    total: float
    notices: list[str] = []


class OrderSummaryResponse(BaseModel):
    order_id: str
    number: str
    customer_id: str
    status: str
    total: float
    modality: str | None = None
    scheduled_for: datetime | None = None
    item_count: int
    placed_at: datetime | None = None
    updated_at: datetime | None = None


class OrderResponse(BaseModel):
    order_id: str
    number: str
    customer_id: str
    status: str
    total: float
    modality: str
    scheduled_for: datetime
    phone: str
    address: AddressSchema | None = None
    note: str | None = None
    lines: list[OrderLineSchema]
    history: list[StatusChangeSchema]
    placed_at: datetime
    updated_at: datetime
