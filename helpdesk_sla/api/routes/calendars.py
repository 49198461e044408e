from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk_sla.database import get_db
from helpdesk_sla.schemas.business_calendar import (
    BusinessCalendarCreate,
    BusinessCalendarResponse,
    BusinessCalendarSummary,
    BusinessCalendarUpdate,
)
from helpdesk_sla.services import business_calendar_service

router = APIRouter()


@router.get("", response_model=list[BusinessCalendarSummary])
async def list_calendars(db: AsyncSession = Depends(get_db)):
    return await business_calendar_service.get_all_business_calendars(db)


@router.get("/{calendar_id}", response_model=BusinessCalendarResponse)
async def get_calendar(calendar_id: int, db: AsyncSession = Depends(get_db)):
    calendar = await business_calendar_service.get_business_calendar_with_config(db, calendar_id)
    if calendar is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business calendar not found")
    return calendar


@router.post("", response_model=BusinessCalendarResponse, status_code=status.HTTP_201_CREATED)
async def create_calendar(data: BusinessCalendarCreate, db: AsyncSession = Depends(get_db)):
    """Create a calendar. Working hours and holidays are validated here, not at calculation time."""
    if await business_calendar_service.get_by_name(db, data.name) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Calendar name already exists")
    calendar = await business_calendar_service.create_calendar(db, data)
    await db.commit()
    await db.refresh(calendar)
    return calendar


@router.put("/{calendar_id}", response_model=BusinessCalendarResponse)
async def update_calendar(
    calendar_id: int,
    data: BusinessCalendarUpdate,
    db: AsyncSession = Depends(get_db),
):
    calendar = await business_calendar_service.get_business_calendar_with_config(db, calendar_id)
    if calendar is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business calendar not found")
    if data.name is not None and data.name != calendar.name:
        if await business_calendar_service.get_by_name(db, data.name) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Calendar name already exists")
    calendar = await business_calendar_service.update_calendar(db, calendar, data)
    await db.commit()
    await db.refresh(calendar)
    return calendar
