# Importing every model registers its table on Base.metadata
from archinnection.models.user import AuthSession, User
from archinnection.models.profile import Education, Experience, Profile, Project, Skill
from archinnection.models.post import Comment, Like, Post
from archinnection.models.job import JOB_STATUSES, JOB_TYPES, Job
from archinnection.models.connection import CONNECTION_STATUSES, Connection

__all__ = [
    "AuthSession",
    "User",
    "Profile",
    "Experience",
    "Education",
    "Skill",
    "Project",
    "Post",
    "Like",
    "Comment",
    "Job",
    "JOB_TYPES",
    "JOB_STATUSES",
    "Connection",
    "CONNECTION_STATUSES",
]
