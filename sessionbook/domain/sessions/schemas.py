"""Calendar session schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_non_negative_price, validate_time

SessionStatus = Literal["planned", "completed", "canceled"]


class SessionCreate(BaseModel):
    """Schema for a manually entered (custom) session"""

    client_id: int
    date: dt.date
    start_time: str
    duration_minutes: int = Field(default=60, gt=0)
    price_override: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("price_override")
    @classmethod
    def check_price(cls, v):
        return validate_non_negative_price(v)


class SessionUpdate(BaseModel):
    """Schema for editing a session; only provided fields are applied"""

    client_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    status: Optional[SessionStatus] = None
    price_override: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def check_time(cls, v):
        if v is None:
            return v
        return validate_time(v)

    @field_validator("price_override")
    @classmethod
    def check_price(cls, v):
        return validate_non_negative_price(v)


class SessionMove(BaseModel):
    date: dt.date
    start_time: str

    @field_validator("start_time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class SessionResponse(BaseModel):
    id: int
    client_id: int
    date: dt.date
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    template_rule_id: Optional[str] = None
    is_custom: bool
    is_edited: bool
    price_override: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class SessionPaymentState(BaseModel):
    """Everything a calendar cell needs to show how a session is paid"""

    session_id: int
    price: float
    allocated: float
    effective_allocated: float
    remaining: float
    status: str
    effective_status: str
