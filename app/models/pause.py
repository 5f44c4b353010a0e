"""
BRFQ pause reasons and the pause/resume log.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class PauseReason(Base):
    __tablename__ = "pause_reasons"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(50), unique=True, nullable=False, index=True)
    label = Column(String(255), nullable=False)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


class PauseAction(Base):
    __tablename__ = "pause_actions"

    id = Column(Integer, primary_key=True, index=True)
    brfq_id = Column(Integer, ForeignKey("brfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # paused, resumed
    performed_by = Column(String(255), default="unknown_user")
    reason_id = Column(Integer, ForeignKey("pause_reasons.id", ondelete="SET NULL"), nullable=True)
    reason_text = Column(Text, nullable=True)
    notify_suppliers = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    brfq = relationship("BRFQ", back_populates="pause_actions")
    reason = relationship("PauseReason")
