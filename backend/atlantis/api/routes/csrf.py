"""CSRF token endpoint."""

from fastapi import APIRouter, Depends

from atlantis.api.csrf import ensure_csrf_cookie
from atlantis.schemas.diagram import CsrfTokenResponse

router = APIRouter(tags=["csrf"])


@router.get("/csrf", response_model=CsrfTokenResponse)
async def get_csrf_token(token: str = Depends(ensure_csrf_cookie)) -> CsrfTokenResponse:
    """Return the caller's CSRF token, issuing the cookie if needed."""
    return CsrfTokenResponse(token=token)
