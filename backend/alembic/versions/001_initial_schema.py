"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Creates accounts, sessions, profiles and profile sections, the feed
       (posts, likes, comments), jobs and connections.
How:   PostgreSQL types: UUID keys generated by gen_random_uuid(),
       TIMESTAMP WITH TIME ZONE defaulting to CURRENT_TIMESTAMP.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _owner(name: str = "user_id", target: str = "profiles.id") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    # ── Identity ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        _timestamp("created_at"),
    )

    op.create_table(
        "auth_sessions",
        _id(),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        _owner(target="users.id"),
        _timestamp("created_at"),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        _timestamp("last_seen_at"),
    )
    op.create_index("idx_auth_sessions_user_id", "auth_sessions", ["user_id"])

    # ── Profiles ──────────────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("title", sa.String(160)),
        sa.Column("location", sa.String(160)),
        sa.Column("bio", sa.Text()),
        sa.Column("avatar_url", sa.String(512)),
        sa.Column("avatar_key", sa.String(255)),
        sa.Column("resume_url", sa.String(512)),
        sa.Column("resume_key", sa.String(255)),
        sa.Column("resume_name", sa.String(255)),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_profiles_updated_at", "profiles", [sa.text("updated_at DESC")])

    op.create_table(
        "experiences",
        _id(),
        _owner(),
        sa.Column("title", sa.String(160), nullable=False),
        sa.Column("company", sa.String(160), nullable=False),
        sa.Column("location", sa.String(160)),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("description", sa.Text()),
        _timestamp("created_at"),
    )
    op.create_index("idx_experiences_user_id", "experiences", ["user_id"])

    op.create_table(
        "education",
        _id(),
        _owner(),
        sa.Column("school", sa.String(160), nullable=False),
        sa.Column("degree", sa.String(160)),
        sa.Column("field_of_study", sa.String(160)),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        _timestamp("created_at"),
    )
    op.create_index("idx_education_user_id", "education", ["user_id"])

    op.create_table(
        "skills",
        _id(),
        _owner(),
        sa.Column("name", sa.String(80), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("user_id", "name", name="uq_skills_user_name"),
    )

    op.create_table(
        "projects",
        _id(),
        _owner(),
        sa.Column("title", sa.String(160), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("url", sa.String(512)),
        sa.Column("image_url", sa.String(512)),
        _timestamp("created_at"),
    )
    op.create_index("idx_projects_user_id", "projects", ["user_id"])

    # ── Feed ──────────────────────────────────────────────────────────────
    op.create_table(
        "posts",
        _id(),
        _owner(),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("image_url", sa.String(512)),
        sa.Column("image_key", sa.String(255)),
        _timestamp("created_at"),
    )
    op.create_index("idx_posts_created_at", "posts", [sa.text("created_at DESC")])

    op.create_table(
        "likes",
        _id(),
        _owner("post_id", "posts.id"),
        _owner(),
        _timestamp("created_at"),
        sa.UniqueConstraint("post_id", "user_id", name="uq_likes_post_user"),
    )

    op.create_table(
        "comments",
        _id(),
        _owner("post_id", "posts.id"),
        _owner(),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("idx_comments_post_id", "comments", ["post_id"])

    # ── Jobs ──────────────────────────────────────────────────────────────
    op.create_table(
        "jobs",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("job_type", sa.String(20), nullable=False),
        sa.Column("salary_range", sa.String(100)),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("requirements", sa.Text(), nullable=False),
        sa.Column("contact_email", sa.String(320), nullable=False),
        sa.Column("application_url", sa.String(512)),
        _owner("posted_by"),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "job_type IN ('full-time', 'part-time', 'contract', 'freelance', 'internship')",
            name="ck_jobs_job_type",
        ),
        sa.CheckConstraint("status IN ('active', 'closed')", name="ck_jobs_status"),
    )
    op.create_index("idx_jobs_status_created_at", "jobs", ["status", sa.text("created_at DESC")])

    # ── Connections ───────────────────────────────────────────────────────
    op.create_table(
        "connections",
        _id(),
        _owner(),
        _owner("connected_user_id"),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("user_id", "connected_user_id", name="uq_connections_pair"),
        sa.CheckConstraint("user_id <> connected_user_id", name="ck_connections_not_self"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')", name="ck_connections_status"
        ),
    )
    op.create_index("idx_connections_connected_user_id", "connections", ["connected_user_id"])


def downgrade() -> None:
    op.drop_table("connections")
    op.drop_table("jobs")
    op.drop_table("comments")
    op.drop_table("likes")
    op.drop_table("posts")
    op.drop_table("projects")
    op.drop_table("skills")
    op.drop_table("education")
    op.drop_table("experiences")
    op.drop_table("profiles")
    op.drop_table("auth_sessions")
    op.drop_table("users")
