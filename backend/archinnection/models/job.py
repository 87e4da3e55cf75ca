"""
Archinnection Backend: Job Listing Model
==========================================

What:  ORM model for the `jobs` table.
Who:   JobService (create, list active, list mine, open/close).
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from archinnection.database import Base, utcnow
from archinnection.models.profile import Profile

JOB_TYPES = ("full-time", "part-time", "contract", "freelance", "internship")
JOB_STATUSES = ("active", "closed")


def _in_clause(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Job(Base):
    """
    Lifecycle:
        1. Created with status='active' by the poster
        2. Poster may close it (status='closed') and reopen it
    Only active jobs appear on the public jobs board; the poster's own
    list shows every status.
    """

    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    job_type: Mapped[str] = mapped_column(String(20), nullable=False)
    salary_range: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    requirements: Mapped[str] = mapped_column(Text, nullable=False)
    contact_email: Mapped[str] = mapped_column(String(320), nullable=False)
    application_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    posted_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    poster: Mapped[Profile] = relationship(lazy="raise")

    __table_args__ = (
        CheckConstraint(_in_clause("job_type", JOB_TYPES), name="ck_jobs_job_type"),
        CheckConstraint(_in_clause("status", JOB_STATUSES), name="ck_jobs_status"),
        Index("idx_jobs_status_created_at", "status", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title='{self.title}', status='{self.status}')>"
