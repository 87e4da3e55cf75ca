"""
Archinnection Backend: Route Dependencies
===========================================

What:  FastAPI dependencies shared by routers.
Who:   Every route that needs the signed-in user.
"""

import uuid

from fastapi import Request

from archinnection.exceptions import AuthenticationError


def get_current_user_id(request: Request) -> uuid.UUID:
    """
    Signed-in user id, as resolved by SessionMiddleware.

    Raises:
        AuthenticationError: no live session (→ 401)
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise AuthenticationError()
    return user_id
