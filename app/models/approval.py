"""
Approval container, its ordered steps, and the decision log.
"""
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class StepStatus(str, Enum):
    WAITING = "WAITING"  # materialized, not yet reached
    PENDING = "PENDING"  # the active step
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Approval(Base):
    __tablename__ = "approvals"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    request = relationship("ProcurementRequest", back_populates="approval")
    steps = relationship(
        "ApprovalStep",
        back_populates="approval",
        order_by="ApprovalStep.order",
        cascade="all, delete-orphan",
    )


class ApprovalStep(Base):
    __tablename__ = "approval_steps"
    __table_args__ = (UniqueConstraint("approval_id", "order", name="uq_approval_step_order"),)

    id = Column(Integer, primary_key=True, index=True)
    approval_id = Column(Integer, ForeignKey("approvals.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False)
    role = Column(String(100), nullable=True)
    approver_name = Column(String(100), nullable=True, index=True)
    status = Column(String(20), default=StepStatus.WAITING.value, index=True)
    sla_duration = Column(String(50), nullable=True)  # stored only, e.g. "48 hrs"
    condition = Column(Text, nullable=True)
    is_required = Column(Boolean, default=False)
    comments = Column(Text, nullable=True)
    activated_at = Column(DateTime, nullable=True)
    decided_at = Column(DateTime, nullable=True)
    decided_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    approval = relationship("Approval", back_populates="steps")


class ApprovalHistory(Base):
    __tablename__ = "approval_history"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    step_id = Column(Integer, ForeignKey("approval_steps.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # APPROVED, REJECTED
    actor = Column(String(255), nullable=True)
    channel = Column(String(20), default="email")  # email, dashboard
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    # Relationships
    request = relationship("ProcurementRequest", back_populates="history")
