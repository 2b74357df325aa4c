"""
Route gate for navigable pages.

Every page request is checked against the caller's session before it is
served:

1. no session          -> protected pages redirect to login, keeping the
                          requested URL in ``callbackUrl``
2. non-admin session   -> login
3. setup not finished  -> everything except the setup page redirects to it
4. finished admin      -> login, setup and root redirect to the dashboard

The decision only uses the signed session token. API routes enforce the
same policy with dependencies that re-read the account from storage.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from mindnamo.constants.constants import (
    AUTH_COOKIE_NAME,
    AUTH_PAGE_PREFIXES,
    DASHBOARD_PATH,
    LOGIN_PATH,
    SETUP_PATH,
)
from mindnamo.core.security import SessionClaims, claims_from_token

logger = logging.getLogger(__name__)

UNGATED_PREFIXES = ("/api", "/docs", "/redoc", "/openapi.json", "/static", "/_next", "/favicon.ico", "/health")
STATIC_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".css", ".js")


@dataclass(frozen=True)
class GateDecision:
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.redirect_to is None


ALLOW = GateDecision()


def is_gated_path(path: str) -> bool:
    if path.startswith(UNGATED_PREFIXES):
        return False
    return not path.lower().endswith(STATIC_SUFFIXES)


def decide(path: str, claims: Optional[SessionClaims], requested_url: Optional[str] = None) -> GateDecision:
    """Pure routing decision for one page request."""
    is_auth_page = path.startswith(AUTH_PAGE_PREFIXES)
    is_setup_page = path == SETUP_PATH
    is_dashboard_page = path.startswith(DASHBOARD_PATH)
    is_root_page = path == "/"

    if claims is None:
        if is_dashboard_page or is_setup_page or is_root_page:
            query = urlencode({"callbackUrl": requested_url or path})
            return GateDecision(redirect_to=f"{LOGIN_PATH}?{query}")
        return ALLOW

    if not claims.is_admin:
        # The auth pages stay reachable so the caller can sign in as someone else.
        return ALLOW if is_auth_page else GateDecision(redirect_to=LOGIN_PATH)

    if claims.force_password_change:
        return ALLOW if is_setup_page else GateDecision(redirect_to=SETUP_PATH)

    if is_auth_page or is_setup_page or is_root_page:
        return GateDecision(redirect_to=DASHBOARD_PATH)

    return ALLOW


class RouteGateMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not is_gated_path(path):
            return await call_next(request)

        claims = claims_from_token(request.cookies.get(AUTH_COOKIE_NAME))
        decision = decide(path, claims, str(request.url))
        if decision.allowed:
            return await call_next(request)

        logger.info(f"Route gate: {path} -> {decision.redirect_to}")
        return RedirectResponse(url=decision.redirect_to, status_code=307)
