"""
Modification requests against a published BRFQ and their decision log.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class ModificationRequest(Base):
    __tablename__ = "modification_requests"

    id = Column(Integer, primary_key=True, index=True)
    brfq_id = Column(Integer, ForeignKey("brfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    requested_by = Column(String(255), default="unknown")
    reason = Column(Text, nullable=True)
    field = Column(String(100), default="general")
    requested_fields = Column(JSON, default=list)
    summary = Column(JSON, default=dict)  # {"title": {"from": "...", "to": "..."}, "items": {"to": [...]}}
    status = Column(String(20), default="pending", index=True)  # pending, approved, rejected
    processed_by = Column(String(255), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    requested_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    # Relationships
    brfq = relationship("BRFQ", back_populates="modifications")
    history = relationship(
        "ModificationHistory",
        back_populates="modification",
        order_by="ModificationHistory.acted_at",
        cascade="all, delete-orphan",
    )


class ModificationHistory(Base):
    __tablename__ = "modification_history"

    id = Column(Integer, primary_key=True, index=True)
    modification_id = Column(Integer, ForeignKey("modification_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # approve, reject
    acted_by = Column(String(255), nullable=True)
    note = Column(Text, nullable=True)
    acted_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    modification = relationship("ModificationRequest", back_populates="history")
