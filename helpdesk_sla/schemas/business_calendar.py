import re
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from helpdesk_sla.config import settings
from helpdesk_sla.models.base import Weekday

_HHMM = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


class WorkingDay(BaseModel):
    enabled: bool
    start: str = "08:00"
    end: str = "18:00"

    @field_validator("start", "end")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        if not _HHMM.match(v):
            raise ValueError("time must use the HH:MM format")
        return v

    @model_validator(mode="after")
    def check_window(self):
        # Zero-padded HH:MM compares correctly as a string
        if self.enabled and not self.start < self.end:
            raise ValueError(f"start ({self.start}) must be before end ({self.end})")
        return self


class Holiday(BaseModel):
    date: str
    name: str = Field(min_length=1)
    recurring_annually: bool = False

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        if not re.match(r"^\d{4}-\d{2}-\d{2}$", v):
            raise ValueError("holiday date must use the YYYY-MM-DD format")
        try:
            date.fromisoformat(v)
        except ValueError:
            raise ValueError(f"{v} is not a valid calendar date")
        return v


def _check_timezone(v: str) -> str:
    try:
        ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"unknown timezone {v!r}")
    return v


class BusinessCalendarCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    timezone: str = settings.sla_default_timezone
    skip_weekends: bool = True
    skip_holidays: bool = True
    working_hours: dict[Weekday, WorkingDay]
    holidays: list[Holiday] = []

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        return _check_timezone(v)

    @field_validator("working_hours")
    @classmethod
    def fill_missing_days(cls, v: dict[Weekday, WorkingDay]) -> dict[Weekday, WorkingDay]:
        for day in Weekday:
            v.setdefault(day, WorkingDay(enabled=False))
        return v


class BusinessCalendarUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    timezone: str | None = None
    skip_weekends: bool | None = None
    skip_holidays: bool | None = None
    working_hours: dict[Weekday, WorkingDay] | None = None
    holidays: list[Holiday] | None = None

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        return _check_timezone(v) if v is not None else v


class BusinessCalendarSummary(BaseModel):
    id: int
    name: str
    description: str | None
    timezone: str
    skip_weekends: bool
    skip_holidays: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class BusinessCalendarResponse(BusinessCalendarSummary):
    working_hours: dict[str, WorkingDay]
    holidays: list[Holiday]
