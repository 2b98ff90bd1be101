"""
Admin session guard.

The session lives in a cookie holding a signed, expiring token. The guard
only decides what a request may see; every mutating handler asks it again
before touching the store.
"""

import enum
import functools
import logging
from typing import Any, Awaitable, Callable, Optional

from aiohttp import web

from .tokens import ADMIN_SCOPE, TokenSigner

logger = logging.getLogger(__name__)

SESSION_COOKIE = "admin_session"
LOGIN_PATH = "/admin"

Handler = Callable[[Any, web.Request], Awaitable[web.StreamResponse]]


class GuardState(enum.Enum):
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AdminGuard:
    """Evaluates the admin session cookie for one request at a time."""

    def __init__(
        self,
        signer: TokenSigner,
        max_age: int,
    ) -> None:
        self.signer = signer
        self.max_age = max_age

    def check(
        self,
        request: web.Request,
    ) -> GuardState:
        """
        Work out the session state of a request.

        A request starts in CHECKING and always ends in one of the two
        terminal states; nothing is remembered between requests.

        @param request: Incoming HTTP request
        @return: AUTHENTICATED or UNAUTHENTICATED
        """
        logger.debug("Checking admin session for %s", request.path)

        if self.username(request) is not None:
            return GuardState.AUTHENTICATED
        return GuardState.UNAUTHENTICATED

    def username(
        self,
        request: web.Request,
    ) -> Optional[str]:
        payload = self.signer.verify(request.cookies.get(SESSION_COOKIE), ADMIN_SCOPE)
        return payload.get("sub", "") if payload else None

    def login(
        self,
        response: web.StreamResponse,
        username: str,
    ) -> None:
        """
        Store a fresh session token on the response.

        @param response: Response that will carry the cookie
        @param username: Authenticated admin username
        """
        token = self.signer.issue(ADMIN_SCOPE, self.max_age, subject=username)
        response.set_cookie(
            SESSION_COOKIE,
            token,
            max_age=self.max_age,
            httponly=True,
            samesite="Lax",
            path="/",
        )

    def logout(
        self,
        response: web.StreamResponse,
    ) -> None:
        response.del_cookie(SESSION_COOKIE, path="/")


def require_admin(handler: Handler) -> Handler:
    """
    Refuse a handler to requests without a valid admin session.

    Such requests are redirected to the login page.
    The decorated method's owner must expose the guard as ``self.guard``.
    """

    @functools.wraps(handler)
    async def wrapper(self: Any, request: web.Request) -> web.StreamResponse:
        if self.guard.check(request) is not GuardState.AUTHENTICATED:
            logger.info("Unauthenticated request to %s refused", request.path)
            raise web.HTTPFound(LOGIN_PATH)
        return await handler(self, request)

    return wrapper
