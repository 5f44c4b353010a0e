"""
Procurement request (RFQ/RFP) model.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class RequestStatus:
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    AWARDED = "awarded"

    ALL = (DRAFT, PENDING_APPROVAL, APPROVED, REJECTED, AWARDED)


class ProcurementRequest(Base):
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    request_type = Column(String(20), default="RFP")  # RFQ, RFP
    status = Column(String(30), default=RequestStatus.DRAFT, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    requester = relationship("User", back_populates="requests")
    approval = relationship(
        "Approval",
        back_populates="request",
        uselist=False,
        cascade="all, delete-orphan",
    )
    history = relationship("ApprovalHistory", back_populates="request", cascade="all, delete-orphan")
