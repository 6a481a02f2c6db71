"""ASGI middleware applying the route guard before a page renders."""

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import SessionConfig
from .route_guard import evaluate_route

logger = structlog.get_logger()


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Redirects logged-out visitors away from protected pages."""

    def __init__(self, app: ASGIApp, config: SessionConfig | None = None) -> None:
        super().__init__(app)
        self.config = config or SessionConfig()

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Evaluate the guard and either redirect or continue."""
        path = request.url.path
        decision = evaluate_route(path, request.cookies.get, self.config)

        if decision.redirect_to is not None:
            logger.info("Redirecting unauthenticated visitor to login", path=path)
            return RedirectResponse(url=decision.redirect_to, status_code=307)

        return await call_next(request)
