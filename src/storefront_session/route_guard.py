"""Pre-render route guard.

The guard only checks that a refresh-token cookie is present. It never
verifies the token: a stale or forged cookie passes here and is rejected by
the API, where the client's refresh-and-retry handles it.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from urllib.parse import urlencode

from .config import SessionConfig
from .paths import path_matches

CookieReader = Callable[[str], str | None]


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of evaluating a navigation against the guard."""

    allow: bool
    redirect_to: str | None = None

    @classmethod
    def allowed(cls) -> "GuardDecision":
        return cls(allow=True)

    @classmethod
    def redirect(cls, url: str) -> "GuardDecision":
        return cls(allow=False, redirect_to=url)


def cookie_reader_from_mapping(cookies: Mapping[str, str]) -> CookieReader:
    """Build a cookie reader over a plain mapping of cookie names to values."""
    return cookies.get


def is_protected(path: str, config: SessionConfig) -> bool:
    return path_matches(path, config.protected_prefixes)


def login_redirect_url(path: str, config: SessionConfig) -> str:
    """Login URL carrying ``path`` for the redirect back after login."""
    return f"{config.login_path}?{urlencode({config.redirect_param: path})}"


def evaluate_route(
    path: str,
    cookie_reader: CookieReader,
    config: SessionConfig | None = None,
) -> GuardDecision:
    """Decide whether a navigation to ``path`` may render.

    Args:
        path: Requested path, without query string
        cookie_reader: Returns a cookie value by name, or None if absent
        config: Session configuration (defaults are used if omitted)

    Returns:
        ``allow`` for public paths and for protected paths with a refresh
        cookie, otherwise a redirect to the login entry point
    """
    config = config or SessionConfig()

    if not is_protected(path, config):
        return GuardDecision.allowed()

    if cookie_reader(config.refresh_cookie):
        return GuardDecision.allowed()

    return GuardDecision.redirect(login_redirect_url(path, config))
