"""Seed script for the default calendar and SLA template. Run with: python seed.py [--migrate-legacy-rules]"""
import argparse
import asyncio
import json
from pathlib import Path

from helpdesk_sla.config import settings
from helpdesk_sla.database import async_session
from helpdesk_sla.models import ContractType, SlaTemplate, TicketPriority
from helpdesk_sla.schemas.business_calendar import BusinessCalendarCreate, Holiday
from helpdesk_sla.schemas.sla_template import SlaTemplateRuleItem
from helpdesk_sla.services import business_calendar_service, sla_template_service

SEED_PATHS = [
    Path("/config/holidays.json"),
    Path(__file__).resolve().parent / "holidays.json",
]

WEEKDAY_HOURS = {"enabled": True, "start": "08:00", "end": "18:00"}

# National holidays that fall on the same date every year
RECURRING_HOLIDAYS = [
    {"date": "2024-01-01", "name": "Confraternização Universal"},
    {"date": "2024-04-21", "name": "Tiradentes"},
    {"date": "2024-05-01", "name": "Dia do Trabalho"},
    {"date": "2024-09-07", "name": "Independência do Brasil"},
    {"date": "2024-10-12", "name": "Nossa Senhora Aparecida"},
    {"date": "2024-11-02", "name": "Finados"},
    {"date": "2024-11-15", "name": "Proclamação da República"},
    {"date": "2024-12-25", "name": "Natal"},
]

SLA_DEFAULTS = [
    {"priority": TicketPriority.low, "response_time_minutes": settings.sla_low_response, "solution_time_minutes": settings.sla_low_solution},
    {"priority": TicketPriority.medium, "response_time_minutes": settings.sla_medium_response, "solution_time_minutes": settings.sla_medium_solution},
    {"priority": TicketPriority.high, "response_time_minutes": settings.sla_high_response, "solution_time_minutes": settings.sla_high_solution},
    {"priority": TicketPriority.urgent, "response_time_minutes": settings.sla_urgent_response, "solution_time_minutes": settings.sla_urgent_solution},
    {"priority": TicketPriority.critical, "response_time_minutes": settings.sla_critical_response, "solution_time_minutes": settings.sla_critical_solution},
]


def load_extra_holidays() -> list[dict]:
    """Load movable holidays (Carnaval, Corpus Christi...) from holidays.json if present."""
    seed_file = next((p for p in SEED_PATHS if p.exists()), None)
    if seed_file is None:
        print("No holidays.json found, seeding fixed-date holidays only.")
        return []

    with open(seed_file) as f:
        holidays = json.load(f)
    print(f"Loaded {len(holidays)} holidays from {seed_file}")
    return holidays


async def seed():
    async with async_session() as db:
        existing = await business_calendar_service.get_by_name(db, settings.sla_default_calendar_name)
        if existing is not None:
            print("Database already seeded. Skipping.")
            return

        holidays = [Holiday(**h, recurring_annually=True) for h in RECURRING_HOLIDAYS]
        holidays += [Holiday(**h) for h in load_extra_holidays()]
        calendar = await business_calendar_service.create_calendar(
            db,
            BusinessCalendarCreate(
                name=settings.sla_default_calendar_name,
                description="Segunda a sexta, 08:00-18:00, feriados nacionais",
                timezone=settings.sla_default_timezone,
                working_hours={
                    day: WEEKDAY_HOURS for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
                },
                holidays=holidays,
            ),
        )

        template = SlaTemplate(
            name="Suporte Padrão",
            description="Default SLA for support contracts",
            contract_type=ContractType.support,
            is_default=True,
            is_active=True,
            calendar_id=calendar.id,
        )
        db.add(template)
        await db.flush()

        await sla_template_service.bulk_upsert_rules(
            db, template.id, [SlaTemplateRuleItem(**s) for s in SLA_DEFAULTS]
        )
        await db.commit()

        print("=" * 60)
        print("Seed data created successfully!")
        print(f"Calendar: {calendar.name} ({calendar.timezone})")
        print(f"Default support template: {template.name}")
        print("=" * 60)


async def migrate_legacy_rules():
    async with async_session() as db:
        written = await sla_template_service.migrate_legacy_rules(db)
        await db.commit()
    print(f"Migrated {written} legacy template rules")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--migrate-legacy-rules",
        action="store_true",
        help="Move JSON rules stored on sla_templates into sla_template_rules",
    )
    args = parser.parse_args()
    if args.migrate_legacy_rules:
        asyncio.run(migrate_legacy_rules())
    else:
        asyncio.run(seed())
