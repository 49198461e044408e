from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk_sla.models.base import Base, ContractType, JsonType, TicketPriority, TimestampMixin

if TYPE_CHECKING:
    from helpdesk_sla.models.business_calendar import BusinessCalendar


class SlaTemplate(TimestampMixin, Base):
    __tablename__ = "sla_templates"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contract_type: Mapped[ContractType] = mapped_column(
        Enum(ContractType, name="contracttype"), nullable=False, index=True
    )
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    calendar_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("business_calendars.id"), nullable=True
    )
    # Legacy inline rule array, superseded by sla_template_rules
    rules: Mapped[Optional[Any]] = mapped_column(JsonType, nullable=True)

    calendar: Mapped[Optional["BusinessCalendar"]] = relationship(
        "BusinessCalendar", back_populates="templates", lazy="raise"
    )
    rule_rows: Mapped[list["SlaTemplateRule"]] = relationship(
        "SlaTemplateRule",
        back_populates="template",
        lazy="raise",
        cascade="all, delete-orphan",
        order_by="SlaTemplateRule.id",
    )


class SlaTemplateRule(TimestampMixin, Base):
    __tablename__ = "sla_template_rules"
    __table_args__ = (UniqueConstraint("template_id", "priority", name="uq_sla_template_rules_priority"),)

    template_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sla_templates.id", ondelete="CASCADE"), nullable=False
    )
    priority: Mapped[TicketPriority] = mapped_column(
        Enum(TicketPriority, name="ticketpriority"), nullable=False
    )
    response_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    solution_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    escalation_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    escalation_time_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    template: Mapped["SlaTemplate"] = relationship(
        "SlaTemplate", back_populates="rule_rows", lazy="raise"
    )
