from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
import uuid

from .database import Base


class Company(Base):
    """Tenant whose stored settings feed every calculation context."""
    __tablename__ = "companies"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    settings = Column(JSON, default=dict)  # CompanySettings: currency, rates, factors, discount rules
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
