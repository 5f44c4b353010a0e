"""
Approval rules for BRFQ events (separate from the request workflow template).
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class ApprovalRule(Base):
    __tablename__ = "approval_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    criteria = Column(JSON, nullable=True)  # e.g. {"minValue": 10000, "category": "IT"}
    sla_hours = Column(Integer, nullable=True)
    escalation_email = Column(String(255), nullable=True)
    auto_publish = Column(Boolean, default=False)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    approvers = relationship(
        "ApprovalRuleApprover",
        back_populates="rule",
        order_by="ApprovalRuleApprover.order",
        cascade="all, delete-orphan",
    )


class ApprovalRuleApprover(Base):
    __tablename__ = "approval_rule_approvers"

    id = Column(Integer, primary_key=True, index=True)
    rule_id = Column(Integer, ForeignKey("approval_rules.id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("approvers.id", ondelete="SET NULL"), nullable=True)
    role = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    order = Column(Integer, nullable=False, default=1)
    is_parallel = Column(Boolean, default=False)

    # Relationships
    rule = relationship("ApprovalRule", back_populates="approvers")
