from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk_sla.models.business_calendar import BusinessCalendar
from helpdesk_sla.schemas.business_calendar import BusinessCalendarCreate, BusinessCalendarUpdate


async def get_all_business_calendars(db: AsyncSession) -> list[BusinessCalendar]:
    result = await db.execute(select(BusinessCalendar).order_by(BusinessCalendar.name))
    return list(result.scalars().all())


async def get_business_calendar_with_config(db: AsyncSession, calendar_id: int) -> BusinessCalendar | None:
    return await db.get(BusinessCalendar, calendar_id)


async def get_by_name(db: AsyncSession, name: str) -> BusinessCalendar | None:
    result = await db.execute(select(BusinessCalendar).where(BusinessCalendar.name == name))
    return result.scalar_one_or_none()


async def create_calendar(db: AsyncSession, data: BusinessCalendarCreate) -> BusinessCalendar:
    """Persist an already validated calendar. Callers check name uniqueness first."""
    payload = data.model_dump(mode="json")
    calendar = BusinessCalendar(**payload)
    db.add(calendar)
    await db.flush()
    return calendar


async def update_calendar(
    db: AsyncSession, calendar: BusinessCalendar, data: BusinessCalendarUpdate
) -> BusinessCalendar:
    """Apply a partial update. Submitted weekdays are merged into the stored working hours."""
    for field, value in data.model_dump(mode="json", exclude_unset=True).items():
        if value is None and field != "description":
            continue
        if field == "working_hours":
            value = {**(calendar.working_hours or {}), **value}
        setattr(calendar, field, value)
    await db.flush()
    return calendar
