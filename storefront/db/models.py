"""
Local storage models. The client keeps a single key-value table; the cart is
one record under a fixed key.
"""
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from storefront.db.base import Base


class StorageRecord(Base):
    __tablename__ = "storage_records"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
