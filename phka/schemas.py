"""
Request bodies

Pydantic models validating what clients send. Responses are plain dicts built
in phka.serializers.
"""
import re
from datetime import date
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator

# ---------- Enumerations ----------

Gender = Literal["male", "female", "other"]
SkinType = Literal["dry", "oily", "combination", "normal", "sensitive"]
AddressType = Literal["billing", "shipping", "both"]
PaymentMethod = Literal["credit_card", "debit_card", "paypal", "bank_transfer", "cash_on_delivery"]
OrderStatus = Literal[
    "pending",
    "confirmed",
    "processing",
    "packed",
    "shipped",
    "out_for_delivery",
    "delivered",
    "cancelled",
    "refunded",
    "failed",
]
Role = Literal["customer", "admin", "super_admin"]
TicketPriority = Literal["low", "medium", "high", "urgent"]
TicketCategory = Literal["order", "product", "payment", "account", "other"]
TicketStatus = Literal["open", "in_progress", "resolved", "closed"]
ModerationAction = Literal["approve", "reject", "feature"]

PHONE_RE = re.compile(r"^[\+]?[1-9][\d]{0,15}$")


def _check_phone(v: Optional[str]) -> Optional[str]:
    if v is not None and v != "" and not PHONE_RE.match(v):
        raise ValueError("Please provide a valid phone number.")
    return v or None


def _check_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long.")
    if not any(c.isupper() for c in v) or not any(c.islower() for c in v):
        raise ValueError("Password must contain both uppercase and lowercase letters.")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one number.")
    return v


def _check_past(v: Optional[date]) -> Optional[date]:
    if v is not None and v >= date.today():
        raise ValueError("Birth date must be in the past.")
    return v


# ---------- Auth ----------

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str
    password_confirmation: str
    phone: Optional[str] = Field(None, max_length=20)
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    skin_type: Optional[SkinType] = None
    device_name: Optional[str] = Field(None, max_length=255)

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v):
        return _check_phone(v)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_past(cls, v):
        return _check_past(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Password confirmation does not match.")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    device_name: Optional[str] = Field(None, max_length=255)


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    skin_type: Optional[SkinType] = None

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v):
        return _check_phone(v)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_past(cls, v):
        return _check_past(v)


class ChangePasswordRequest(BaseModel):
    current_password: str
    password: str
    password_confirmation: str
    device_name: Optional[str] = Field(None, max_length=255)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Password confirmation does not match.")
        return v


# ---------- Cart & Orders ----------

class AddToCartRequest(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    quantity: int = Field(..., ge=1, le=99)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., ge=1, le=99)


class CreateOrderRequest(BaseModel):
    billing_address_id: int
    shipping_address_id: int
    payment_method: PaymentMethod
    notes: Optional[str] = Field(None, max_length=1000)


# ---------- User ----------

class AddressRequest(BaseModel):
    type: AddressType = "both"
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    address_line_1: str = Field(..., min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    state: str = Field(..., min_length=1, max_length=255)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2")
    phone: Optional[str] = Field(None, max_length=20)
    is_default: bool = False

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v):
        return _check_phone(v)


class UpdateAddressRequest(BaseModel):
    type: Optional[AddressType] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    address_line_1: Optional[str] = Field(None, min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=255)
    state: Optional[str] = Field(None, min_length=1, max_length=255)
    postal_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    phone: Optional[str] = Field(None, max_length=20)
    is_default: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, v):
        return _check_phone(v)


class WishlistRequest(BaseModel):
    product_id: int


# ---------- Catalog ----------

class ReviewRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, max_length=5000)


# ---------- Beauty ----------

class TakeQuizRequest(BaseModel):
    answers: Dict[str, Union[str, int]] = Field(..., description="question id -> chosen option value")


# ---------- Community ----------

class CreatePostRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    content: str = Field(..., min_length=1, max_length=10000)
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)


class UpdatePostRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = Field(None, min_length=1, max_length=10000)
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None


class CommentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[int] = None


# ---------- Support ----------

class CreateTicketRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=5000)
    priority: TicketPriority = "medium"
    category: TicketCategory
    order_id: Optional[int] = None


class TicketMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)


# ---------- Admin ----------

class OrderStatusRequest(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class ModerateReviewRequest(BaseModel):
    is_approved: bool
    admin_notes: Optional[str] = Field(None, max_length=1000)


class ModeratePostRequest(BaseModel):
    action: ModerationAction


class UpdateTicketRequest(BaseModel):
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assigned_to: Optional[int] = None
    resolution: Optional[str] = Field(None, max_length=5000)
    reply: Optional[str] = Field(None, max_length=5000)
    internal: bool = False


class UpdateRoleRequest(BaseModel):
    role: Role
