"""Shop hours schemas"""

import re
from datetime import datetime

from pydantic import BaseModel, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def _check_time(v: str) -> str:
    if not TIME_PATTERN.match(v or ""):
        raise ValueError("Time must be HH:MM or HH:MM:SS")
    return v if v.count(":") == 2 else f"{v}:00"


class OperatingHoursUpdate(BaseModel):
    openTime: str
    closeTime: str
    isActive: bool = True

    @field_validator("openTime", "closeTime")
    @classmethod
    def validate_time(cls, v):
        return _check_time(v)

    @model_validator(mode="after")
    def check_order(self):
        if self.closeTime <= self.openTime:
            raise ValueError("Closing time must be after opening time")
        return self


class ClosureCreate(BaseModel):
    location: str
    startDate: datetime
    endDate: datetime
    reason: str

    @model_validator(mode="after")
    def check_range(self):
        if self.endDate <= self.startDate:
            raise ValueError("Closure end must be after its start")
        return self


class ClosureUpdate(BaseModel):
    startDate: datetime
    endDate: datetime
    reason: str
    isActive: bool = True

    @model_validator(mode="after")
    def check_range(self):
        if self.endDate <= self.startDate:
            raise ValueError("Closure end must be after its start")
        return self


class AvailabilityCheck(BaseModel):
    location: str
    startAt: datetime
    endAt: datetime
