"""
Pydantic Schemas

Cart line items (and their persisted form), the validated add-to-cart
product contract, checkout quotes, the realtime order submission payload,
order detail documents returned by the backend, and API request/response
bodies.

Persisted and wire field names follow the mobile app's JSON
(``id``, ``price``, ``picture``, ``optionId``, ``addPrice`` ...), so a
mirror written by the app can be read back here and vice versa.
"""

from typing import Any, List, Literal, Optional
from datetime import datetime
from enum import IntEnum

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)


# =============================================================================
# CART
# =============================================================================

class SelectedOption(BaseModel):
    """One chosen configuration value of a product (e.g. size = large)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    option_id: str = Field(..., min_length=1, alias="optionId")
    choice_id: str = Field(..., min_length=1, alias="choiceId")
    additional_price: float = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("addPrice", "additionalPrice", "additional_price"),
        serialization_alias="addPrice",
    )


class ProductInput(BaseModel):
    """
    Product data handed to ``add_to_cart`` by catalog and detail screens.

    ``unit_price`` already includes any option surcharge; the cart never
    computes surcharges itself.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1, validation_alias=AliasChoices("id", "_id", "product_id"))
    name: str = Field(..., min_length=1)
    unit_price: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("unit_price", "unitPrice", "price"),
    )
    picture_url: str = Field(
        default="",
        validation_alias=AliasChoices("picture_url", "pictureUrl", "picture"),
    )
    options: List[SelectedOption] = Field(default_factory=list)

    @field_validator("options", mode="before")
    @classmethod
    def none_means_no_options(cls, v: Any) -> Any:
        return [] if v is None else v


class CartLineItem(BaseModel):
    """
    One distinct purchasable configuration in the cart.

    Name, picture and price are snapshots taken when the product was added
    and are never re-fetched.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_id: str = Field(..., min_length=1, alias="id")
    name: str
    unit_price: float = Field(..., alias="price", allow_inf_nan=False)
    picture_url: str = Field(default="", alias="picture")
    quantity: int = Field(..., ge=1)
    selected_options: tuple[SelectedOption, ...] = Field(default=(), alias="options")

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity


# Serializer for the whole persisted cart (a JSON array of line items).
CartPayload = TypeAdapter(List[CartLineItem])


class CartLineItemResponse(BaseModel):
    """A line item as shown to API clients."""
    line_key: str
    product_id: str
    name: str
    unit_price: float
    picture_url: str
    quantity: int
    options: List[SelectedOption]
    subtotal: float


class CartSnapshot(BaseModel):
    """Read-only view of the cart used by checkout and the API."""
    items: List[CartLineItemResponse]
    subtotal: float
    item_count: int
    line_count: int


class AddToCartRequest(BaseModel):
    """Body of POST /api/cart/items.

    ``product`` is left loosely typed so that the cart engine performs the
    validation and reports it with its own error type.
    """
    product: dict[str, Any]
    quantity: int = 1


# =============================================================================
# CHECKOUT
# =============================================================================

class ContactInfo(BaseModel):
    """Delivery contact captured on the checkout screen."""
    full_name: str = ""
    address: Optional[str] = None
    phone: Optional[str] = None


class VoucherInfo(BaseModel):
    """Voucher document returned by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    code: str = ""
    discount: float = Field(default=0.0, ge=0)
    is_active: bool = Field(default=True, alias="isActive")


class PointsRedemption(BaseModel):
    """Outcome of clamping a loyalty-point request to the user's balance."""
    requested: int
    applied: int
    available: int
    error: Optional[str] = None


class CheckoutQuote(BaseModel):
    """Price breakdown shown before the order is placed."""
    subtotal: float
    shipping_fee: float
    voucher_discount: float = 0.0
    points_discount: float = 0.0
    total: float
    voucher_id: Optional[str] = None
    points_error: Optional[str] = None


class OrderLineItem(BaseModel):
    """One line of an order submission."""

    model_config = ConfigDict(populate_by_name=True)

    product: str
    quantity: int
    subtotal: float
    options: List[SelectedOption] = Field(default_factory=list)


class OrderSubmission(BaseModel):
    """Payload of the ``createBill`` realtime event."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(default="", alias="fullName")
    address_shipment: str
    phone_shipment: str
    ship: float
    total_price: float
    point_discount: int = Field(default=0, alias="pointDiscount")
    is_paid: bool = Field(default=False, alias="isPaid")
    voucher: Optional[str] = None
    line_items: List[OrderLineItem] = Field(..., alias="lineItems")
    note: str = ""
    account: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the backend's field names, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class OrderSubmissionResult(BaseModel):
    """Answer of the ``billCreated`` realtime event."""

    model_config = ConfigDict(extra="ignore")

    status: Literal["success", "failure"]
    data: Optional[dict[str, Any]] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == "success"

    @property
    def order_id(self) -> Optional[str]:
        if not self.data:
            return None
        return self.data.get("_id") or self.data.get("id")


class CheckoutRequest(BaseModel):
    """Body of POST /api/checkout and POST /api/checkout/quote."""
    contact: ContactInfo = Field(default_factory=ContactInfo)
    voucher_code: Optional[str] = None
    points: int = 0
    token: Optional[str] = None
    note: str = ""


class CheckoutResponse(BaseModel):
    success: bool
    message: str
    order_id: Optional[str] = None
    quote: CheckoutQuote


# =============================================================================
# ACCOUNT
# =============================================================================

class UserProfile(BaseModel):
    """Subset of the account profile used at checkout."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    fullname: str = ""
    email: Optional[str] = None
    phonenumber: Optional[str] = None
    address: Optional[str] = None
    point: int = 0


class OptionChoice(BaseModel):
    """A selectable choice of a product option."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str = ""
    additional_price: float = Field(default=0.0, alias="additionalPrice")


# =============================================================================
# ORDERS
# =============================================================================

class OrderState(IntEnum):
    """Delivery progression of an order, in order."""
    PROCESSING = 1
    PREPARING = 2
    DELIVERING = 3
    COMPLETED = 4


class OrderProduct(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str = ""
    picture: str = ""
    price: float = 0.0
    current_price: Optional[float] = Field(default=None, alias="currentPrice")


class OrderOptionRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str = ""


class OrderLineOption(BaseModel):
    """Populated option/choice pair of a stored order line."""

    model_config = ConfigDict(extra="ignore")

    option: OrderOptionRef
    choices: OptionChoice


class OrderDetailLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, alias="_id")
    quantity: int = Field(..., ge=1)
    subtotal: float = 0.0
    product: OrderProduct
    options: List[OrderLineOption] = Field(default_factory=list)


class OrderVoucher(BaseModel):
    code: str = ""
    discount: float = 0.0


class OrderDetail(BaseModel):
    """Order (bill) document returned by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    full_name: str = Field(default="", alias="fullName")
    phone_shipment: str = ""
    address_shipment: str = ""
    is_paid: bool = Field(default=False, alias="isPaid")
    total_price: float = 0.0
    ship: float = 0.0
    point_discount: float = Field(default=0.0, alias="pointDiscount")
    voucher: Optional[OrderVoucher] = None
    line_items: List[OrderDetailLine] = Field(default_factory=list, alias="lineItem")
    state: int = OrderState.PROCESSING


class OrderStage(BaseModel):
    """One step of the order status stepper."""
    state: int
    label: str
    completed: bool


class OrderStatusResponse(BaseModel):
    order_id: str
    state: int
    is_paid: bool
    total_price: float
    stages: List[OrderStage]


class ReorderResponse(BaseModel):
    success: bool
    message: str
    lines_added: int
    cart: CartSnapshot


# =============================================================================
# GENERIC RESPONSES
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    backend: str
    order_channel: str
    cart_loaded: bool
    pending_writes: bool
    failed_writes: int
    timestamp: datetime
