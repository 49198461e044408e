from datetime import datetime

from pydantic import BaseModel, Field

from helpdesk_sla.models.base import TicketPriority


class TicketSlaContext(BaseModel):
    ticket_id: int
    priority: TicketPriority
    contract_id: str | None = None
    created_at: datetime


class RecalculateRequest(BaseModel):
    reason: str = Field(min_length=1)


class SlaCalculationResult(BaseModel):
    response_due_at: datetime
    solution_due_at: datetime
    escalation_due_at: datetime | None = None
    business_minutes_used: int = 0
    template_id: int
    calendar_id: int
    # None when the history row could not be written
    calculation_id: int | None = None


class SlaCalculationHistoryItem(BaseModel):
    id: int
    ticket_id: int
    calculated_at: datetime
    priority: TicketPriority
    response_due_at: datetime
    solution_due_at: datetime
    escalation_due_at: datetime | None
    business_minutes_used: int
    calendar_id: int
    sla_template_id: int
    template_name: str | None = None
    calendar_name: str | None = None
    is_current: bool
    recalculated_reason: str | None

    model_config = {"from_attributes": True}
