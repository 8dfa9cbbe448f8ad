from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    employer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=False)
    company_name = Column(String(255), nullable=False)
    location = Column(String(100), nullable=False)
    job_type = Column(String(50), nullable=True)  # e.g. Full-time, Part-time, Contract
    salary_range = Column(String(50), nullable=True)
    posted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    employer = relationship("User", back_populates="jobs")
    # Deleting a job removes its applications at ORM level; the FK cascade covers raw deletes.
    applications = relationship(
        "Application",
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
