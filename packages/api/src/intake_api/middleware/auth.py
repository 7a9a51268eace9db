# This project was developed with assistance from AI tools.
"""
Caller identity from the upstream gateway.

Authentication happens in front of this service; the gateway forwards
the verified identity as headers. This module only reads them into a
``UserContext``; roles annotate audit and activity entries, they do not
gate anything here.

Set AUTH_DISABLED=true to act as a dev admin (tests / local dev).
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from intake_db.enums import UserRole

from ..core.config import settings
from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
USER_EMAIL_HEADER = "X-User-Email"
USER_NAME_HEADER = "X-User-Name"

_DISABLED_USER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@loan-intake.local",
    name="Dev User",
)


def _user_from_headers(headers) -> UserContext:
    user_id = headers.get(USER_ID_HEADER)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )

    raw_role = headers.get(USER_ROLE_HEADER)
    role = UserRole.from_raw(raw_role)
    if raw_role and role == UserRole.SYSTEM and raw_role != UserRole.SYSTEM.value:
        logger.warning("Unrecognized role %r for user %s; treating as system", raw_role, user_id)

    return UserContext(
        user_id=user_id,
        role=role,
        email=headers.get(USER_EMAIL_HEADER, ""),
        name=headers.get(USER_NAME_HEADER, ""),
    )


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency: return the caller's UserContext.

    When AUTH_DISABLED=true, returns a dev admin user without reading headers.
    """
    if settings.AUTH_DISABLED:
        return _DISABLED_USER
    return _user_from_headers(request.headers)


# Type alias for use in route signatures
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
