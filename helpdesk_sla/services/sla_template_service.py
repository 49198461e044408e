import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk_sla.models.base import TicketPriority
from helpdesk_sla.models.sla_template import SlaTemplate, SlaTemplateRule
from helpdesk_sla.schemas.sla_template import SlaTemplateRuleItem
from helpdesk_sla.services.sla_resolver import legacy_rule_from_json

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {p.value: i for i, p in enumerate(TicketPriority)}


def _sort_rules(rules: list[SlaTemplateRule]) -> list[SlaTemplateRule]:
    return sorted(rules, key=lambda r: PRIORITY_ORDER.get(r.priority.value, 99))


async def get_all_sla_templates(db: AsyncSession, only_active: bool = False) -> list[SlaTemplate]:
    query = select(SlaTemplate).order_by(SlaTemplate.contract_type, SlaTemplate.name)
    if only_active:
        query = query.where(SlaTemplate.is_active == True)  # noqa: E712
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_sla_template_with_rules(
    db: AsyncSession, template_id: int
) -> tuple[SlaTemplate, list[SlaTemplateRule]] | None:
    result = await db.execute(
        select(SlaTemplate)
        .where(SlaTemplate.id == template_id)
        .options(selectinload(SlaTemplate.rule_rows))
        # Rules may have been upserted since the template was first loaded
        .execution_options(populate_existing=True)
    )
    template = result.scalar_one_or_none()
    if template is None:
        return None
    return template, _sort_rules(list(template.rule_rows))


async def bulk_upsert_rules(
    db: AsyncSession, template_id: int, rules: list[SlaTemplateRuleItem]
) -> list[SlaTemplateRule]:
    """Insert or update one rule per priority. Priorities not listed are left alone."""
    results: list[SlaTemplateRule] = []
    for item in rules:
        result = await db.execute(
            select(SlaTemplateRule).where(
                SlaTemplateRule.template_id == template_id,
                SlaTemplateRule.priority == item.priority,
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            existing.response_time_minutes = item.response_time_minutes
            existing.solution_time_minutes = item.solution_time_minutes
            existing.escalation_enabled = item.escalation_enabled
            existing.escalation_time_minutes = item.escalation_time_minutes
            results.append(existing)
        else:
            new_rule = SlaTemplateRule(template_id=template_id, **item.model_dump())
            db.add(new_rule)
            await db.flush()
            results.append(new_rule)
    await db.flush()
    return _sort_rules(results)


async def migrate_legacy_rules(db: AsyncSession) -> int:
    """Copy legacy JSON rules into sla_template_rules and clear the JSON.

    Normalized rows that already exist win over the JSON. Returns the number
    of rows written.
    """
    result = await db.execute(
        select(SlaTemplate)
        .where(SlaTemplate.rules.isnot(None))
        .options(selectinload(SlaTemplate.rule_rows))
        .execution_options(populate_existing=True)
    )
    written = 0
    for template in result.scalars().all():
        existing = {rule.priority for rule in template.rule_rows}
        for priority in TicketPriority:
            if priority in existing:
                continue
            rule = legacy_rule_from_json(template, priority)
            if rule is not None:
                db.add(rule)
                written += 1
        template.rules = None
        logger.info("Migrated legacy rules for SLA template %s", template.id)
    await db.flush()
    return written
