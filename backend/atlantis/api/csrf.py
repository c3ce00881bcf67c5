"""Anti-forgery (CSRF) token handling.

A random token is stored in a cookie readable by the frontend, which echoes
it back in a header on every mutating request (double-submit cookie).
"""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Request, Response

from atlantis.core.config import settings
from atlantis.core.logging import get_logger

logger = get_logger(__name__)

CSRF_FAILURE_DETAIL = "Invalid CSRF token"


def issue_csrf_token(request: Request, response: Response) -> str:
    """Return the caller's CSRF token, setting the cookie if it is missing.

    Args:
        request: Incoming request (checked for an existing cookie).
        response: Response the cookie is set on.

    Returns:
        The existing or newly issued token.
    """
    existing = request.cookies.get(settings.csrf_cookie_name)
    if existing:
        return existing

    token = secrets.token_urlsafe(32)
    response.set_cookie(
        settings.csrf_cookie_name,
        token,
        max_age=settings.csrf_cookie_max_age,
        path="/",
        secure=settings.csrf_cookie_secure,
        httponly=False,
        samesite="lax",
    )
    return token


def tokens_match(header_token: str | None, cookie_token: str | None) -> bool:
    """Compare header and cookie tokens in constant time."""
    if not header_token or not cookie_token:
        return False
    return secrets.compare_digest(header_token.encode(), cookie_token.encode())


async def ensure_csrf_cookie(request: Request, response: Response) -> str:
    """Dependency for read endpoints that hand out the CSRF cookie."""
    return issue_csrf_token(request, response)


async def require_csrf(request: Request) -> None:
    """Dependency rejecting mutating requests without a matching token.

    Raises:
        HTTPException: 403 if the header token is missing or differs from the cookie.
    """
    header_token = request.headers.get(settings.csrf_header_name)
    cookie_token = request.cookies.get(settings.csrf_cookie_name)
    if not tokens_match(header_token, cookie_token):
        logger.warning("csrf_rejected", method=request.method, path=request.url.path)
        raise HTTPException(status_code=403, detail=CSRF_FAILURE_DETAIL)
