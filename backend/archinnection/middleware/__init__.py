"""
Archinnection Backend: Middleware Package
===========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Rate Limit] → [Logging] → [Session] → [GZip] → [CORS] → Route

    1. Request ID: correlation ID for logs and error bodies, 429s included
    2. Rate Limit: rejects abusive writes before any further processing
    3. Logging: access line with status and duration (sees the session's redirects)
    4. Session: resolves the cookie, gates page routes, sets request.state.user_id
"""
