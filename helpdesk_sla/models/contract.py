from typing import Optional

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk_sla.models.base import Base, ContractType


class Contract(Base):
    """Read-only view of the contract subsystem's table."""

    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[ContractType] = mapped_column(
        Enum(ContractType, name="contracttype"), nullable=False, default=ContractType.support
    )
    sla_template_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("sla_templates.id", ondelete="SET NULL"), nullable=True
    )
