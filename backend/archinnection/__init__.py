"""
Archinnection Backend: Application Package
============================================

What: Backend for Archinnection, a professional network for architects:
      profiles, a post/like/comment feed, job listings and connections.
Who:  Imported by uvicorn (archinnection.main:app), Alembic and pytest.

Layers:
    ┌─────────────────────────────────────┐
    │   Middleware (session gate, logs)   │  ← cookie → request.state.user_id
    ├─────────────────────────────────────┤
    │      Routes (API + page payloads)   │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (business rules)       │  ← auth, profiles, feed, jobs,
    │                                     │    connections, object storage
    ├─────────────────────────────────────┤
    │     Models & Schemas (data)         │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Database (persistence)          │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
