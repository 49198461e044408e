import pytest
from httpx import AsyncClient
from pydantic import ValidationError

from helpdesk_sla.schemas.business_calendar import BusinessCalendarCreate, Holiday, WorkingDay

WEEKDAY = {"enabled": True, "start": "08:00", "end": "18:00"}


def _payload(**overrides) -> dict:
    payload = {
        "name": "Comercial Brasil",
        "timezone": "America/Sao_Paulo",
        "working_hours": {day: WEEKDAY for day in ("monday", "tuesday", "wednesday", "thursday", "friday")},
        "holidays": [{"date": "2024-12-25", "name": "Natal", "recurring_annually": True}],
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def test_working_day_rejects_start_after_end():
    with pytest.raises(ValidationError):
        WorkingDay(enabled=True, start="18:00", end="08:00")


def test_working_day_rejects_empty_window():
    with pytest.raises(ValidationError):
        WorkingDay(enabled=True, start="08:00", end="08:00")


def test_disabled_working_day_skips_window_check():
    assert WorkingDay(enabled=False, start="18:00", end="08:00").enabled is False


@pytest.mark.parametrize("value", ["8:00", "24:00", "08:60", "0800"])
def test_working_day_rejects_malformed_times(value):
    with pytest.raises(ValidationError):
        WorkingDay(enabled=True, start=value, end="23:00")


@pytest.mark.parametrize("value", ["2024-02-30", "25/12/2024", "2024-13-01"])
def test_holiday_rejects_invalid_dates(value):
    with pytest.raises(ValidationError):
        Holiday(date=value, name="Feriado")


def test_calendar_rejects_unknown_timezone():
    with pytest.raises(ValidationError):
        BusinessCalendarCreate(**_payload(timezone="Mars/Olympus_Mons"))


def test_calendar_fills_unlisted_weekdays_as_disabled():
    calendar = BusinessCalendarCreate(**_payload())
    dumped = calendar.model_dump(mode="json")["working_hours"]

    assert len(dumped) == 7
    assert dumped["saturday"]["enabled"] is False
    assert dumped["monday"] == WEEKDAY


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_create_calendar(client: AsyncClient):
    """POST /api/v1/calendars creates a calendar and returns 201."""
    response = await client.post("/api/v1/calendars", json=_payload())
    assert response.status_code == 201

    data = response.json()
    assert data["name"] == "Comercial Brasil"
    assert data["timezone"] == "America/Sao_Paulo"
    assert data["skip_weekends"] is True
    assert data["working_hours"]["sunday"]["enabled"] is False
    assert data["holidays"][0]["recurring_annually"] is True


async def test_create_calendar_with_invalid_window(client: AsyncClient):
    """An enabled day whose start is not before its end is rejected up front."""
    hours = {"monday": {"enabled": True, "start": "18:00", "end": "08:00"}}
    response = await client.post("/api/v1/calendars", json=_payload(working_hours=hours))
    assert response.status_code == 422


async def test_create_calendar_with_invalid_holiday(client: AsyncClient):
    response = await client.post(
        "/api/v1/calendars", json=_payload(holidays=[{"date": "2024-02-31", "name": "Nope"}])
    )
    assert response.status_code == 422


async def test_create_duplicate_calendar(client: AsyncClient):
    await client.post("/api/v1/calendars", json=_payload())
    response = await client.post("/api/v1/calendars", json=_payload())
    assert response.status_code == 409


async def test_list_and_get_calendars(client: AsyncClient):
    """GET /api/v1/calendars lists summaries; the detail route includes the configuration."""
    created = (await client.post("/api/v1/calendars", json=_payload())).json()
    await client.post("/api/v1/calendars", json=_payload(name="Plantão 24x7"))

    response = await client.get("/api/v1/calendars")
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Comercial Brasil", "Plantão 24x7"]
    assert "working_hours" not in response.json()[0]

    response = await client.get(f"/api/v1/calendars/{created['id']}")
    assert response.status_code == 200
    assert response.json()["working_hours"]["monday"] == WEEKDAY


async def test_get_missing_calendar(client: AsyncClient):
    response = await client.get("/api/v1/calendars/999")
    assert response.status_code == 404


async def test_update_calendar(client: AsyncClient):
    created = (await client.post("/api/v1/calendars", json=_payload())).json()

    response = await client.put(
        f"/api/v1/calendars/{created['id']}",
        json={
            "skip_holidays": False,
            "holidays": [{"date": "2025-03-04", "name": "Carnaval"}],
        },
    )
    assert response.status_code == 200

    data = response.json()
    assert data["skip_holidays"] is False
    assert data["holidays"] == [{"date": "2025-03-04", "name": "Carnaval", "recurring_annually": False}]
    assert data["name"] == "Comercial Brasil"
    assert data["working_hours"]["monday"] == WEEKDAY


async def test_update_single_weekday_keeps_the_others(client: AsyncClient):
    """PUT with one weekday changes that day only; the rest of the week is untouched."""
    created = (await client.post("/api/v1/calendars", json=_payload())).json()
    monday = {"enabled": True, "start": "09:00", "end": "17:00"}

    response = await client.put(
        f"/api/v1/calendars/{created['id']}",
        json={"working_hours": {"monday": monday}},
    )
    assert response.status_code == 200

    hours = response.json()["working_hours"]
    assert len(hours) == 7
    assert hours["monday"] == monday
    for day in ("tuesday", "wednesday", "thursday", "friday"):
        assert hours[day] == WEEKDAY
    assert hours["saturday"]["enabled"] is False


async def test_update_calendar_with_invalid_window(client: AsyncClient):
    created = (await client.post("/api/v1/calendars", json=_payload())).json()

    response = await client.put(
        f"/api/v1/calendars/{created['id']}",
        json={"working_hours": {"friday": {"enabled": True, "start": "17:00", "end": "09:00"}}},
    )
    assert response.status_code == 422


async def test_update_calendar_to_existing_name(client: AsyncClient):
    await client.post("/api/v1/calendars", json=_payload())
    other = (await client.post("/api/v1/calendars", json=_payload(name="Outro"))).json()

    response = await client.put(f"/api/v1/calendars/{other['id']}", json={"name": "Comercial Brasil"})
    assert response.status_code == 409
