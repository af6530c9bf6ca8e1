"""Schedule template schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_non_negative_price, validate_time, validate_weekday


class ScheduleRule(BaseModel):
    """One weekday + time slot of a weekly template"""

    rule_id: Optional[str] = None
    weekday: int  # 1=Monday, 7=Sunday
    start_time: str  # HH:MM
    duration_minutes: int = Field(default=60, gt=0)
    base_price: Optional[float] = None
    is_active: bool = True

    @field_validator("weekday")
    @classmethod
    def check_weekday(cls, v):
        return validate_weekday(v)

    @field_validator("start_time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @field_validator("base_price")
    @classmethod
    def check_price(cls, v):
        return validate_non_negative_price(v)


def _check_window(valid_from: Optional[dt.date], valid_to: Optional[dt.date]) -> None:
    if valid_from and valid_to and valid_to < valid_from:
        raise ValueError("valid_to cannot be earlier than valid_from")


class TemplateCreate(BaseModel):
    rules: list[ScheduleRule] = Field(default_factory=list)
    timezone: Optional[str] = None
    generation_horizon_days: Optional[int] = Field(default=None, gt=0)
    valid_from: Optional[dt.date] = None
    valid_to: Optional[dt.date] = None
    auto_extend: Optional[bool] = None

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.valid_from, self.valid_to)
        return self


class TemplateUpdate(BaseModel):
    """Only provided fields are applied; rules are replaced wholesale"""

    rules: Optional[list[ScheduleRule]] = None
    timezone: Optional[str] = None
    generation_horizon_days: Optional[int] = Field(default=None, gt=0)
    valid_from: Optional[dt.date] = None
    valid_to: Optional[dt.date] = None
    auto_extend: Optional[bool] = None

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.valid_from, self.valid_to)
        return self


class TemplateResponse(BaseModel):
    id: int
    client_id: int
    timezone: str
    rules: list[ScheduleRule]
    generation_horizon_days: int
    valid_from: Optional[dt.date] = None
    valid_to: Optional[dt.date] = None
    auto_extend: bool
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class GenerateRequest(BaseModel):
    horizon_days: Optional[int] = Field(default=None, gt=0)


class EnsureSessionsRequest(BaseModel):
    date_to: dt.date
    client_ids: Optional[list[int]] = None


class GenerationResult(BaseModel):
    template_id: int
    created: int
    session_ids: list[int]
