"""Payment schemas - Pydantic models for payments and allocations"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_positive_amount

PaymentMethod = Literal["cash", "card", "transfer", "other"]


class PaymentCreate(BaseModel):
    client_id: int
    amount: float
    paid_at: Optional[dt.datetime] = None
    method: PaymentMethod = "cash"
    comment: Optional[str] = None
    auto_allocate: bool = False

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        return validate_positive_amount(v)


class PaymentUpdate(BaseModel):
    """Amount, date, method and comment can be corrected after the fact"""

    amount: Optional[float] = None
    paid_at: Optional[dt.datetime] = None
    method: Optional[PaymentMethod] = None
    comment: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        if v is None:
            return v
        return validate_positive_amount(v)


class PaymentResponse(BaseModel):
    id: int
    client_id: int
    amount: float
    paid_at: dt.datetime
    method: str
    comment: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class AllocationCreate(BaseModel):
    session_id: int
    amount: float

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        return validate_positive_amount(v)


class ReallocateRequest(BaseModel):
    allocations: list[AllocationCreate] = Field(default_factory=list)


class AllocationResponse(BaseModel):
    id: int
    payment_id: int
    session_id: int
    allocated_amount: float
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
