"""Shared validation utilities"""

import math
import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def validate_time(value: str) -> str:
    """
    Validate a time of day in 24h HH:MM format.

    Raises:
        ValueError: If the value is not a valid HH:MM time
    """
    if not value or not TIME_PATTERN.match(value.strip()):
        raise ValueError("Time must be in HH:MM format")
    return value.strip()


def validate_weekday(value: int) -> int:
    """Weekday must be 1 (Monday) to 7 (Sunday)"""
    if value < 1 or value > 7:
        raise ValueError("Weekday must be between 1 (Monday) and 7 (Sunday)")
    return value


def validate_positive_amount(value: float) -> float:
    if value is None or not math.isfinite(value) or value <= 0:
        raise ValueError("Amount must be greater than 0")
    return value


def validate_non_negative_price(value: Optional[float]) -> Optional[float]:
    """Prices may be 0 (free session) but never negative"""
    if value is None:
        return value
    if not math.isfinite(value) or value < 0:
        raise ValueError("Price cannot be negative")
    return value
