"""
Admin-configured workflow template copied into each request's approval.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class ApprovalWorkflowTemplate(Base):
    __tablename__ = "approval_workflow_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, default="Master Workflow")
    default_sla = Column(String(50), nullable=True)
    allow_parallel = Column(Boolean, default=False)
    send_reminders = Column(Boolean, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    steps = relationship(
        "ApprovalStepTemplate",
        back_populates="template",
        order_by="ApprovalStepTemplate.order",
        cascade="all, delete-orphan",
    )


class ApprovalStepTemplate(Base):
    __tablename__ = "approval_step_templates"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("approval_workflow_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False)
    role = Column(String(100), nullable=True)
    approver_name = Column(String(100), nullable=True)
    sla_duration = Column(String(50), nullable=True)
    condition = Column(Text, nullable=True)
    condition_type = Column(String(50), nullable=True)
    condition_operator = Column(String(20), nullable=True)
    condition_value = Column(String(100), nullable=True)
    is_required = Column(Boolean, default=False)

    # Relationships
    template = relationship("ApprovalWorkflowTemplate", back_populates="steps")
