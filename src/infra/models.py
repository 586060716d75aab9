"""
SQLAlchemy ORM models for database tables
"""

from datetime import datetime, timezone
from sqlalchemy import BigInteger, Column, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserModel(Base):
    """SQLAlchemy ORM model for users table"""

    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True)
    registered_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<User(user_id='{self.user_id}', registered_at='{self.registered_at}')>"


class UserStepsModel(Base):
    """SQLAlchemy ORM model for user_steps table"""

    __tablename__ = "user_steps"

    user_id = Column(String(64), ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    # YYYY-MM-DD, so lexical comparison is date comparison
    date = Column(String(10), primary_key=True)
    steps = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        Index('idx_user_steps_date', 'date'),
    )

    def __repr__(self):
        return f"<UserSteps(user_id='{self.user_id}', date='{self.date}', steps={self.steps})>"
