from datetime import date, time
from typing import TYPE_CHECKING, Any, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk_sla.models.base import WEEKDAYS, Base, JsonType, TimestampMixin

if TYPE_CHECKING:
    from helpdesk_sla.models.sla_template import SlaTemplate


def parse_hhmm(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


class BusinessCalendar(TimestampMixin, Base):
    """Working hours, holidays and skip rules for one organization.

    ``working_hours`` maps weekday names to ``{"enabled", "start", "end"}``
    and ``holidays`` is a list of ``{"date", "name", "recurring_annually"}``.
    Both are validated when the calendar is saved, so the accessors below
    trust their shape.
    """

    __tablename__ = "business_calendars"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    skip_weekends: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    skip_holidays: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    working_hours: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False)
    holidays: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False, default=list)

    templates: Mapped[list["SlaTemplate"]] = relationship(
        "SlaTemplate", back_populates="calendar", lazy="raise"
    )

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone or "UTC")

    def is_holiday(self, day: date) -> bool:
        for holiday in self.holidays or []:
            holiday_date = date.fromisoformat(holiday["date"])
            if holiday_date == day:
                return True
            # Rows written before save-time validation may use camelCase keys
            recurring = holiday.get("recurring_annually", holiday.get("recurringAnnually"))
            if recurring and (holiday_date.month, holiday_date.day) == (
                day.month,
                day.day,
            ):
                return True
        return False

    @staticmethod
    def is_weekend(day: date) -> bool:
        return day.weekday() >= 5

    def working_window(self, day: date) -> tuple[time, time] | None:
        """Return the ``[start, end)`` window for ``day``, or None when no time counts.

        A holiday (with ``skip_holidays``) or a weekend (with ``skip_weekends``)
        is never a working day, and ``enabled=False`` disables a weekday on its
        own even when ``skip_weekends`` is off.
        """
        if self.skip_holidays and self.is_holiday(day):
            return None
        if self.skip_weekends and self.is_weekend(day):
            return None
        config = (self.working_hours or {}).get(WEEKDAYS[day.weekday()].value)
        if not config or not config.get("enabled"):
            return None
        return parse_hhmm(config["start"]), parse_hhmm(config["end"])
