"""
Supplier model (only the fields notifications need).
"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime, timezone
from ..database import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String(255), nullable=False)
    registration_email = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
