"""
Buyer RFQ (BRFQ) and its line items.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Float, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class BRFQ(Base):
    __tablename__ = "brfqs"

    id = Column(Integer, primary_key=True, index=True)
    rfq_id = Column(String(50), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(30), default="draft", index=True)  # draft, modifying, approved, rejected, paused, published, awarded
    approval_status = Column(String(30), default="none", index=True)  # none, pending, approved, rejected, modification_pending
    published = Column(Boolean, default=False)
    publish_on_approval = Column(Boolean, default=False)
    currency = Column(String(10), nullable=True)
    incoterms = Column(String(50), nullable=True)
    carrier = Column(String(100), nullable=True)
    notes_to_supplier = Column(Text, nullable=True)
    target_price = Column(Float, nullable=True)
    close_date = Column(DateTime, nullable=True)
    suppliers_selected = Column(JSON, default=list)  # ids, emails, or {id, email} objects
    categories = Column(JSON, default=list)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approval_note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    items = relationship("RequestItem", back_populates="brfq", cascade="all, delete-orphan")
    modifications = relationship("ModificationRequest", back_populates="brfq", cascade="all, delete-orphan")
    pause_actions = relationship(
        "PauseAction",
        back_populates="brfq",
        order_by="PauseAction.id",
        cascade="all, delete-orphan",
    )
    awards = relationship("Award", back_populates="brfq", cascade="all, delete-orphan")


class RequestItem(Base):
    __tablename__ = "request_items"

    id = Column(Integer, primary_key=True, index=True)
    brfq_id = Column(Integer, ForeignKey("brfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    internal_part_no = Column(String(100), nullable=True)
    manufacturer = Column(String(100), nullable=True)
    mfg_part_no = Column(String(100), nullable=True)
    description = Column(Text, default="")
    uom = Column(String(20), default="EA")
    quantity = Column(Float, default=0)

    # Relationships
    brfq = relationship("BRFQ", back_populates="items")
