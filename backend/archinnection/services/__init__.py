"""
Archinnection Backend: Services Layer
=======================================

What:  Business logic between routes (HTTP) and the database.
How:   Stateless singletons; every call receives the request's AsyncSession.

Service Inventory:
    - AuthService:       sign-up, sign-in, sessions
    - StorageService:    avatars / posts / resumes buckets
    - ProfileService:    profiles, sections, avatar and resume uploads
    - PostService:       feed, posts, likes, comments
    - ConnectionService: requests, status, network page
    - JobService:        job board
"""
