from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk_sla.database import get_db
from helpdesk_sla.schemas.sla_calculation import (
    RecalculateRequest,
    SlaCalculationHistoryItem,
    SlaCalculationResult,
    TicketSlaContext,
)
from helpdesk_sla.schemas.sla_template import (
    SlaTemplateDetail,
    SlaTemplateRuleResponse,
    SlaTemplateRulesUpdate,
    SlaTemplateSummary,
)
from helpdesk_sla.services import sla_calculation_service, sla_template_service

router = APIRouter()


@router.post("/calculate", response_model=SlaCalculationResult)
async def calculate_sla(
    context: TicketSlaContext,
    db: AsyncSession = Depends(get_db),
):
    """Calculate and record SLA deadlines for a ticket."""
    result = await sla_calculation_service.calculate_ticket_sla(db, context)
    await db.commit()
    return result


@router.post("/tickets/{ticket_id}/recalculate", response_model=SlaCalculationResult)
async def recalculate_sla(
    ticket_id: int,
    data: RecalculateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Recalculate a ticket's SLA after a priority or contract change."""
    result = await sla_calculation_service.recalculate_ticket_sla(db, ticket_id, data.reason)
    await db.commit()
    return result


@router.get("/tickets/{ticket_id}/history", response_model=list[SlaCalculationHistoryItem])
async def get_sla_history(
    ticket_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Calculation history for a ticket, most recent first."""
    return await sla_calculation_service.get_sla_history(db, ticket_id)


@router.get("/templates", response_model=list[SlaTemplateSummary])
async def list_templates(
    only_active: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await sla_template_service.get_all_sla_templates(db, only_active=only_active)


@router.get("/templates/{template_id}", response_model=SlaTemplateDetail)
async def get_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
):
    found = await sla_template_service.get_sla_template_with_rules(db, template_id)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="SLA template not found")
    template, rules = found
    return SlaTemplateDetail(
        **SlaTemplateSummary.model_validate(template).model_dump(),
        rules=[SlaTemplateRuleResponse.model_validate(rule) for rule in rules],
    )


@router.patch("/templates/{template_id}/rules", response_model=list[SlaTemplateRuleResponse])
async def update_template_rules(
    template_id: int,
    data: SlaTemplateRulesUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Bulk upsert per-priority rules. Later edits never touch recorded calculations."""
    if await sla_template_service.get_sla_template_with_rules(db, template_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="SLA template not found")
    rules = await sla_template_service.bulk_upsert_rules(db, template_id, data.rules)
    await db.commit()
    return rules
