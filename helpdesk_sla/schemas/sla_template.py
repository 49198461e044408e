from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from helpdesk_sla.models.base import ContractType, TicketPriority


class SlaTemplateRuleItem(BaseModel):
    priority: TicketPriority
    response_time_minutes: int = Field(ge=1, le=525600)
    solution_time_minutes: int = Field(ge=1, le=525600)
    escalation_enabled: bool = False
    escalation_time_minutes: int | None = Field(default=None, ge=1)

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_times(self):
        if self.solution_time_minutes < self.response_time_minutes:
            raise ValueError("solution_time_minutes must be >= response_time_minutes")
        if self.escalation_enabled and self.escalation_time_minutes is None:
            raise ValueError("escalation_time_minutes is required when escalation is enabled")
        return self


class SlaTemplateRulesUpdate(BaseModel):
    rules: list[SlaTemplateRuleItem]


class SlaTemplateRuleResponse(SlaTemplateRuleItem):
    id: int
    template_id: int


class SlaTemplateSummary(BaseModel):
    id: int
    name: str
    description: str | None
    contract_type: ContractType
    is_default: bool
    is_active: bool
    calendar_id: int | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class SlaTemplateDetail(SlaTemplateSummary):
    rules: list[SlaTemplateRuleResponse] = []
