import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk_sla.config import settings
from helpdesk_sla.exceptions import ConfigurationError, PersistenceWarning, TicketNotFoundError
from helpdesk_sla.models.business_calendar import BusinessCalendar
from helpdesk_sla.models.sla_calculation import SlaCalculation
from helpdesk_sla.models.sla_template import SlaTemplate, SlaTemplateRule
from helpdesk_sla.models.ticket import Ticket
from helpdesk_sla.schemas.sla_calculation import SlaCalculationResult, TicketSlaContext
from helpdesk_sla.services import sla_resolver
from helpdesk_sla.services.business_clock import add_business_minutes

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Resolution (fatal on missing configuration)
# ---------------------------------------------------------------------------

async def _resolve_configuration(
    db: AsyncSession, context: TicketSlaContext
) -> tuple[SlaTemplate, SlaTemplateRule, BusinessCalendar]:
    template = await sla_resolver.resolve_template(db, context.contract_id)

    rule = await sla_resolver.resolve_rule(db, template.id, context.priority)
    if rule is None:
        raise ConfigurationError(
            f'SLA template "{template.name}" has no rule for priority "{context.priority.value}". '
            "Configure the template rules before creating tickets.",
            {
                "template_id": template.id,
                "template_name": template.name,
                "priority": context.priority.value,
                "contract_id": context.contract_id,
            },
        )

    calendar = await sla_resolver.resolve_calendar(db, template.id)
    if calendar is None:
        raise ConfigurationError(
            f'No business calendar available for SLA template "{template.name}". '
            "Configure a business calendar.",
            {"template_id": template.id, "template_name": template.name},
        )

    return template, rule, calendar


def _compute_deadlines(
    created_at: datetime, rule: SlaTemplateRule, calendar: BusinessCalendar
) -> tuple[datetime, datetime, datetime | None]:
    """Each deadline counts from ticket creation, independently of the others."""
    threshold = settings.sla_exact_mode_max_minutes
    response_due_at = add_business_minutes(
        created_at, rule.response_time_minutes, calendar, exact_mode_max_minutes=threshold
    )
    solution_due_at = add_business_minutes(
        created_at, rule.solution_time_minutes, calendar, exact_mode_max_minutes=threshold
    )
    escalation_due_at = None
    if rule.escalation_enabled and rule.escalation_time_minutes:
        escalation_due_at = add_business_minutes(
            created_at, rule.escalation_time_minutes, calendar, exact_mode_max_minutes=threshold
        )
    return response_due_at, solution_due_at, escalation_due_at


# ---------------------------------------------------------------------------
# History (never fatal)
# ---------------------------------------------------------------------------

async def _insert_current_calculation(db: AsyncSession, calculation: SlaCalculation) -> None:
    """Supersede the ticket's current row and insert the new one in one savepoint.

    The partial unique index on (ticket_id WHERE is_current) rejects a
    concurrent second current row.
    """
    async with db.begin_nested():
        await db.execute(
            update(SlaCalculation)
            .where(SlaCalculation.ticket_id == calculation.ticket_id, SlaCalculation.is_current == True)  # noqa: E712
            .values(is_current=False)
        )
        db.add(calculation)
        await db.flush()


async def _record_calculation(db: AsyncSession, calculation: SlaCalculation) -> None:
    try:
        await _insert_current_calculation(db, calculation)
    except SQLAlchemyError as exc:
        raise PersistenceWarning(
            f"Could not record SLA calculation for ticket {calculation.ticket_id}: {exc}"
        ) from exc


def _utc(value: datetime | None) -> datetime | None:
    return value.astimezone(timezone.utc) if value is not None else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def calculate_ticket_sla(db: AsyncSession, context: TicketSlaContext) -> SlaCalculationResult:
    """Compute response/solution/escalation deadlines for a ticket and log them.

    Raises ConfigurationError when the template, rule or calendar is missing.
    A failed history write is logged and the result is still returned.
    """
    template, rule, calendar = await _resolve_configuration(db, context)
    response_due_at, solution_due_at, escalation_due_at = _compute_deadlines(
        context.created_at, rule, calendar
    )

    calculation = SlaCalculation(
        ticket_id=context.ticket_id,
        priority=context.priority,
        response_due_at=_utc(response_due_at),
        solution_due_at=_utc(solution_due_at),
        escalation_due_at=_utc(escalation_due_at),
        business_minutes_used=0,
        calendar_id=calendar.id,
        sla_template_id=template.id,
        is_current=True,
    )
    calculation_id = None
    try:
        await _record_calculation(db, calculation)
        calculation_id = calculation.id
    except PersistenceWarning as warning:
        logger.warning("%s", warning)

    logger.info(
        "SLA calculated for ticket %s: template=%s calendar=%s priority=%s response=%s solution=%s",
        context.ticket_id,
        template.name,
        calendar.name,
        context.priority.value,
        response_due_at.isoformat(),
        solution_due_at.isoformat(),
    )

    return SlaCalculationResult(
        response_due_at=response_due_at,
        solution_due_at=solution_due_at,
        escalation_due_at=escalation_due_at,
        business_minutes_used=0,
        template_id=template.id,
        calendar_id=calendar.id,
        calculation_id=calculation_id,
    )


async def recalculate_ticket_sla(db: AsyncSession, ticket_id: int, reason: str) -> SlaCalculationResult:
    """Re-run the calculation from the ticket's current priority and contract."""
    ticket = await db.get(Ticket, ticket_id)
    if ticket is None:
        raise TicketNotFoundError(ticket_id)

    context = TicketSlaContext(
        ticket_id=ticket.id,
        priority=ticket.priority,
        contract_id=ticket.contract_id,
        created_at=ticket.created_at,
    )
    logger.info("Recalculating SLA for ticket %s: %s", ticket_id, reason)
    result = await calculate_ticket_sla(db, context)

    if result.calculation_id is not None:
        try:
            async with db.begin_nested():
                await db.execute(
                    update(SlaCalculation)
                    .where(SlaCalculation.id == result.calculation_id)
                    .values(recalculated_reason=reason)
                )
        except SQLAlchemyError:
            logger.warning("Could not record recalculation reason for ticket %s", ticket_id, exc_info=True)
    return result


async def get_sla_history(db: AsyncSession, ticket_id: int) -> list[SlaCalculation]:
    """All calculations for a ticket, most recent first."""
    result = await db.execute(
        select(SlaCalculation)
        .where(SlaCalculation.ticket_id == ticket_id)
        .order_by(SlaCalculation.calculated_at.desc(), SlaCalculation.id.desc())
        .options(selectinload(SlaCalculation.template), selectinload(SlaCalculation.calendar))
    )
    return list(result.scalars().all())
