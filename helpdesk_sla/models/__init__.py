from helpdesk_sla.models.base import Base, ContractType, TicketPriority, TimestampMixin, Weekday
from helpdesk_sla.models.business_calendar import BusinessCalendar
from helpdesk_sla.models.contract import Contract
from helpdesk_sla.models.sla_calculation import SlaCalculation
from helpdesk_sla.models.sla_template import SlaTemplate, SlaTemplateRule
from helpdesk_sla.models.ticket import Ticket

__all__ = [
    "Base",
    "BusinessCalendar",
    "Contract",
    "ContractType",
    "SlaCalculation",
    "SlaTemplate",
    "SlaTemplateRule",
    "Ticket",
    "TicketPriority",
    "TimestampMixin",
    "Weekday",
]
