from sqlalchemy import Column, String, DateTime, Date, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from connect_db import Base
import uuid

def utcnow():
    return datetime.now(timezone.utc)

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)  # always stored lowercase
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    expenses = relationship("Expense", back_populates="owner", cascade="all, delete-orphan")

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2, asdecimal=True), nullable=False)
    category = Column(String, nullable=False)
    description = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    # NULLs never collide under a UNIQUE constraint, so keys are unique only when present
    idempotency_key = Column(String, unique=True, nullable=True)

    # Relationship
    owner = relationship("User", back_populates="expenses")

    __table_args__ = (
        Index("ix_expenses_owner_category", "owner_id", "category"),
        Index("ix_expenses_owner_date", "owner_id", "date"),
    )
