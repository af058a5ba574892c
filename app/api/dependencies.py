"""
FastAPI Dependencies

Request-scoped wiring between the HTTP layer and the services:
- the requester identity forwarded by the auth gateway
- a RedirectService bound to the request's session
- per-endpoint-group rate limiting keyed on the client address
"""

from typing import Callable, Optional

from fastapi import Depends, Header, Request
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.services.redirect_service import RedirectService

USER_ID_HEADER = "X-User-Id"


async def get_requester_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> Optional[str]:
    """
    Identity of the caller, as set by the upstream auth gateway.

    Token verification happens before requests reach this service; a missing
    or blank header means an anonymous caller.
    """
    if x_user_id is None:
        return None
    x_user_id = x_user_id.strip()
    return x_user_id or None


async def get_redirect_service(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> RedirectService:
    """RedirectService for this request, sharing the process-wide click recorder."""
    return RedirectService(session, click_recorder=request.app.state.click_recorder)


def rate_limit(group: str) -> Callable:
    """
    Build a dependency that counts the call against `group`'s limiter.

    Usage:
        @router.post("/api/urls", dependencies=[Depends(rate_limit("shorten"))])
    """
    async def check_rate_limit(request: Request) -> None:
        limiter = request.app.state.rate_limiters[group]
        limiter.check(get_remote_address(request))

    return check_rate_limit
