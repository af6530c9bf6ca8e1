"""Package schemas - Pydantic models for prepaid session bundles"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_non_negative_price

PackageStatus = Literal["active", "exhausted", "expired"]


class PackageCreate(BaseModel):
    client_id: int
    title: str = "Package"
    total_price: float
    sessions_count: int = Field(gt=0)
    valid_from: Optional[dt.date] = None
    valid_until: Optional[dt.date] = None

    @field_validator("total_price")
    @classmethod
    def check_price(cls, v):
        return validate_non_negative_price(v)

    @model_validator(mode="after")
    def check_validity(self):
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValueError("valid_until cannot be earlier than valid_from")
        return self


class PackageUpdate(BaseModel):
    title: Optional[str] = None
    total_price: Optional[float] = None
    sessions_count: Optional[int] = Field(default=None, gt=0)
    status: Optional[PackageStatus] = None
    valid_from: Optional[dt.date] = None
    valid_until: Optional[dt.date] = None

    @field_validator("total_price")
    @classmethod
    def check_price(cls, v):
        return validate_non_negative_price(v)


class PackageResponse(BaseModel):
    id: int
    client_id: int
    title: str
    total_price: float
    sessions_count: int
    price_per_session: float
    status: str
    valid_from: Optional[dt.date] = None
    valid_until: Optional[dt.date] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
