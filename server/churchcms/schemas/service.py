from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time_value(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not TIME_PATTERN.fullmatch(value):
        raise ValueError("Time must use the HH:MM 24-hour format")
    return value


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    date: datetime
    start_time: str
    end_time: str
    active: bool = True

    @validator("start_time", "end_time")
    def validate_times(cls, value: str) -> str:
        return validate_time_value(value)

    @validator("end_time")
    def validate_window(cls, value: str, values) -> str:
        start = values.get("start_time")
        if start and value <= start:
            raise ValueError("End time must be after start time")
        return value


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    date: Optional[datetime] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    active: Optional[bool] = None

    @validator("start_time", "end_time")
    def validate_times(cls, value: Optional[str]) -> Optional[str]:
        return validate_time_value(value)


class ServiceOut(BaseModel):
    id: int
    name: str
    date: datetime
    start_time: str
    end_time: str
    active: bool

    class Config:
        from_attributes = True
