"""
Awards on a BRFQ, their winning suppliers, approval log, and the
singleton award workflow (rule configuration).
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Float, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class AwardStatus:
    PENDING = "pending"
    APPROVED = "approved"


class Award(Base):
    __tablename__ = "awards"

    id = Column(Integer, primary_key=True, index=True)
    brfq_id = Column(Integer, ForeignKey("brfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(String(100), nullable=False)  # first selected supplier
    justification = Column(Text, default="")
    estimated_value = Column(Float, nullable=True)
    split_award = Column(Boolean, default=False)
    status = Column(String(20), default=AwardStatus.PENDING, index=True)
    created_by = Column(String(255), default="system")
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    brfq = relationship("BRFQ", back_populates="awards")
    winners = relationship("AwardWinner", back_populates="award", cascade="all, delete-orphan")
    history = relationship(
        "AwardApprovalHistory",
        back_populates="award",
        order_by="AwardApprovalHistory.id",
        cascade="all, delete-orphan",
    )


class AwardWinner(Base):
    __tablename__ = "award_winners"

    id = Column(Integer, primary_key=True, index=True)
    award_id = Column(Integer, ForeignKey("awards.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(String(100), nullable=False)
    amount = Column(Float, nullable=True)

    # Relationships
    award = relationship("Award", back_populates="winners")


class AwardApprovalHistory(Base):
    __tablename__ = "award_approval_history"

    id = Column(Integer, primary_key=True, index=True)
    award_id = Column(Integer, ForeignKey("awards.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # requested, approved
    by_user = Column(String(255), nullable=True)
    note = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)  # {"triggered": [...]} or {"auto": true}
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    award = relationship("Award", back_populates="history")


class AwardWorkflow(Base):
    __tablename__ = "award_workflows"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    config = Column(JSON, default=dict)  # {"rules": [...], "notification_mapping": {...}}
    created_by = Column(String(255), default="system")
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
