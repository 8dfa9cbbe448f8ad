from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('employer', 'candidate')", name="ck_users_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False)  # employer / candidate
    company_name = Column(String(255), nullable=True)  # employers only
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    jobs = relationship("Job", back_populates="employer", passive_deletes=True)
    applications = relationship("Application", back_populates="candidate", passive_deletes=True)
