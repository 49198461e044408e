import json
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk_sla.config import settings
from helpdesk_sla.exceptions import ConfigurationError
from helpdesk_sla.models.base import ContractType, TicketPriority
from helpdesk_sla.models.business_calendar import BusinessCalendar
from helpdesk_sla.models.contract import Contract
from helpdesk_sla.models.sla_template import SlaTemplate, SlaTemplateRule

logger = logging.getLogger(__name__)


async def _default_template(db: AsyncSession, contract_type: ContractType) -> SlaTemplate | None:
    result = await db.execute(
        select(SlaTemplate)
        .where(SlaTemplate.contract_type == contract_type, SlaTemplate.is_default == True)  # noqa: E712
        .order_by(SlaTemplate.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def resolve_template(db: AsyncSession, contract_id: str | None = None) -> SlaTemplate:
    """Find the SLA template for a contract, or the default support template without one.

    A contract pointing at a deleted template falls back to the default for
    its contract type instead of failing.
    """
    if contract_id is None:
        template = await _default_template(db, ContractType.support)
        if template is None:
            raise ConfigurationError(
                "No default SLA template configured for contract type 'support'",
                {"contract_type": ContractType.support.value},
            )
        return template

    contract = await db.get(Contract, contract_id)
    if contract is None:
        raise ConfigurationError(f"Contract {contract_id} not found", {"contract_id": contract_id})

    if contract.sla_template_id is not None:
        template = await db.get(SlaTemplate, contract.sla_template_id)
        if template is not None:
            return template
        logger.warning(
            "Contract %s references missing SLA template %s, using the default for %s",
            contract_id,
            contract.sla_template_id,
            contract.type.value,
        )

    template = await _default_template(db, contract.type)
    if template is None:
        raise ConfigurationError(
            f"No default SLA template configured for contract type '{contract.type.value}' "
            f"(contract {contract_id})",
            {"contract_id": contract_id, "contract_type": contract.type.value},
        )
    return template


def legacy_rule_from_json(template: SlaTemplate, priority: TicketPriority) -> SlaTemplateRule | None:
    """Read one rule out of the template's legacy inline ``rules`` JSON.

    Templates created before the sla_template_rules table keep their rules as
    a JSON array (stored as text or structured). The returned rule is never
    added to the session.
    """
    raw = template.rules
    if not raw:
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("SLA template %s has unparseable legacy rules JSON", template.id)
            return None
    if not isinstance(raw, list):
        return None

    for entry in raw:
        if not isinstance(entry, dict) or entry.get("priority") != priority.value:
            continue
        response = entry.get("response_time_minutes", entry.get("responseTimeMinutes"))
        solution = entry.get("solution_time_minutes", entry.get("solutionTimeMinutes"))
        if response is None or solution is None:
            logger.error(
                "Legacy rule for priority %s on SLA template %s is missing its times",
                priority.value,
                template.id,
            )
            return None
        return SlaTemplateRule(
            template_id=template.id,
            priority=priority,
            response_time_minutes=int(response),
            solution_time_minutes=int(solution),
            escalation_enabled=False,
            escalation_time_minutes=None,
        )
    return None


async def resolve_rule(
    db: AsyncSession, template_id: int, priority: TicketPriority | str
) -> SlaTemplateRule | None:
    """Return the rule for exactly this priority, or None.

    Never substitutes another priority's rule: callers treat None as a
    configuration error.
    """
    priority = TicketPriority(priority)
    result = await db.execute(
        select(SlaTemplateRule).where(
            SlaTemplateRule.template_id == template_id,
            SlaTemplateRule.priority == priority,
        )
    )
    rule = result.scalar_one_or_none()
    if rule is not None:
        return rule

    template = await db.get(SlaTemplate, template_id)
    if template is None:
        return None
    rule = legacy_rule_from_json(template, priority)
    if rule is not None:
        logger.info("Using legacy JSON rule for priority %s on SLA template %s", priority.value, template_id)
    return rule


async def resolve_calendar(db: AsyncSession, template_id: int) -> BusinessCalendar | None:
    """Return the template's calendar.

    Templates not yet linked to a calendar use the calendar named by
    ``settings.sla_default_calendar_name``, then the first calendar on record.
    """
    template = await db.get(SlaTemplate, template_id)
    if template is not None and template.calendar_id is not None:
        calendar = await db.get(BusinessCalendar, template.calendar_id)
        if calendar is not None:
            return calendar
        logger.warning(
            "SLA template %s references missing calendar %s", template_id, template.calendar_id
        )

    result = await db.execute(
        select(BusinessCalendar).where(BusinessCalendar.name == settings.sla_default_calendar_name)
    )
    calendar = result.scalar_one_or_none()
    if calendar is not None:
        logger.debug("SLA template %s has no calendar, using %s", template_id, calendar.name)
        return calendar

    result = await db.execute(select(BusinessCalendar).order_by(BusinessCalendar.id).limit(1))
    return result.scalar_one_or_none()
