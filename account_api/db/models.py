"""SQLAlchemy models for the SQL record store."""
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, String, Text, func

from .session import Base


class AccountRow(Base):
    __tablename__ = "accounts"

    user_id = Column(String(20), primary_key=True)
    password_hash = Column(Text, nullable=False)
    nickname = Column(String(30), nullable=False, default="")
    comment = Column(String(100), nullable=False, default="")
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
