from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk_sla.models.base import Base, TicketPriority


class Ticket(Base):
    """The slice of the ticket subsystem the SLA engine reads on recalculation."""

    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    priority: Mapped[TicketPriority] = mapped_column(
        Enum(TicketPriority, name="ticketpriority"), nullable=False
    )
    contract_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("contracts.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
