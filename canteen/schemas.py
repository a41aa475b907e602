from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator
from pydantic.config import ConfigDict

from .utils import sanitize_input


class FoodCategory(str, Enum):
    VEG = "Veg"
    NON_VEG = "Non-Veg"
    BEVERAGE = "Beverage"


class OrderStatus(str, Enum):
    PLACED = "Placed"
    IN_PROCESS = "In Process"
    DELIVERED = "Delivered"

    @classmethod
    def parse(cls, value: str) -> "OrderStatus":
        # older rows and clients use "Processing" for the middle state
        if value == "Processing":
            return cls.IN_PROCESS
        return cls(value)


class FoodItem(BaseModel):
    id: PositiveInt
    name: str
    price: Decimal = Field(..., ge=Decimal("0"))
    description: str = ""
    image_url: str = ""
    category: FoodCategory = FoodCategory.VEG

    model_config = ConfigDict(frozen=True)


class CartLine(BaseModel):
    food_item: FoodItem
    quantity: PositiveInt

    model_config = ConfigDict(frozen=True)


class CartRead(BaseModel):
    lines: list[CartLine] = []
    total_items: int = 0
    total_price: Decimal = Decimal("0")
    warning: Optional[str] = None


class CartItemAdd(BaseModel):
    food_item_id: PositiveInt


class CartItemUpdate(BaseModel):
    # zero or negative removes the line
    quantity: int


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("email")
    def normalize_email(cls, v: str):
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class UserRead(BaseModel):
    id: int
    name: Optional[str] = None
    email: str

    model_config = ConfigDict(from_attributes=True)


class TokenRead(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RoleRead(BaseModel):
    user_id: int
    email: str
    role: str
    delivery_email_registered: bool
    is_owner: bool
    is_delivery_partner: bool
    dashboard: str


class SessionRead(BaseModel):
    user: Optional[UserRead] = None
    role: Optional[RoleRead] = None


class OrderItemRead(BaseModel):
    food_item_id: int
    food_name: str
    food_price: Decimal
    food_image_url: Optional[str] = None
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    user_id: int
    total_price: Decimal
    status: str
    created_at: datetime
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_pincode: Optional[str] = None
    delivery_instructions: Optional[str] = None
    delivery_landmark: Optional[str] = None
    delivery_partner: Optional[str] = None
    delivery_phone: Optional[str] = None
    delivery_email: Optional[str] = None
    estimated_time: Optional[str] = None
    items: list[OrderItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class OrderPlaced(BaseModel):
    order_id: int
    total_price: Decimal


class DeliveryDetails(BaseModel):
    address: str = Field(..., min_length=1, max_length=300)
    city: str = Field(..., min_length=1, max_length=100)
    pincode: str = Field(..., pattern=r"^\d{6}$")
    instructions: Optional[str] = Field(default=None, max_length=500)
    landmark: Optional[str] = Field(default=None, max_length=200)

    @field_validator("address", "city", "instructions", "landmark")
    def clean_text(cls, v: Optional[str]):
        if v is None:
            return v
        cleaned = sanitize_input(v)
        return cleaned


class PaymentForm(BaseModel):
    """Cosmetic payment fields; nothing here is charged."""

    method: Literal["card", "upi"] = "card"
    card_number: str = ""
    expiry_date: str = ""
    cvv: str = ""
    name_on_card: str = ""
    upi_id: str = ""


class PaymentRequest(BaseModel):
    details: DeliveryDetails
    payment: PaymentForm = PaymentForm()


class AssignDelivery(BaseModel):
    partner_id: PositiveInt
    estimated_time: str = Field(default="30-45 minutes", min_length=1, max_length=50)


class DeliveryPartnerCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    partner_name: Optional[str] = Field(default=None, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)

    @field_validator("email")
    def normalize_email(cls, v: str):
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v

    @field_validator("partner_name")
    def clean_name(cls, v: Optional[str]):
        return sanitize_input(v) if v is not None else v


class DeliveryPartnerRead(BaseModel):
    id: int
    email: str
    partner_name: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: datetime
    role_id: Optional[int] = None
    status: Literal["Available", "Busy"] = "Available"

    model_config = ConfigDict(from_attributes=True)


class RoleAssign(BaseModel):
    email: str
    role: Literal["owner", "delivery_partner", "customer"]
