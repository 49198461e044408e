from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk_sla.models.base import Base, TicketPriority

if TYPE_CHECKING:
    from helpdesk_sla.models.business_calendar import BusinessCalendar
    from helpdesk_sla.models.sla_template import SlaTemplate


class SlaCalculation(Base):
    """Append-only calculation history. Only is_current and recalculated_reason change after insert."""

    __tablename__ = "sla_calculations"
    __table_args__ = (
        Index("ix_sla_calculations_ticket_id", "ticket_id"),
        # At most one current row per ticket, enforced by storage
        Index(
            "uq_sla_calculations_current",
            "ticket_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id"), nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    priority: Mapped[TicketPriority] = mapped_column(
        Enum(TicketPriority, name="ticketpriority"), nullable=False
    )
    response_due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    solution_due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    escalation_due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    business_minutes_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    calendar_id: Mapped[int] = mapped_column(Integer, ForeignKey("business_calendars.id"), nullable=False)
    sla_template_id: Mapped[int] = mapped_column(Integer, ForeignKey("sla_templates.id"), nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    recalculated_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    template: Mapped["SlaTemplate"] = relationship("SlaTemplate", lazy="raise")
    calendar: Mapped["BusinessCalendar"] = relationship("BusinessCalendar", lazy="raise")

    @property
    def template_name(self) -> str | None:
        try:
            return self.template.name if self.template else None
        except InvalidRequestError:
            return None

    @property
    def calendar_name(self) -> str | None:
        try:
            return self.calendar.name if self.calendar else None
        except InvalidRequestError:
            return None
