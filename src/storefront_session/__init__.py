"""Session refresh, route guarding and state hydration for the storefront API."""

__version__ = "0.1.0"

from storefront_session.config import SessionConfig, load_config
from storefront_session.exceptions import (
    ApiConnectionError,
    ApiHTTPError,
    ApiResponseError,
    ApiTimeoutError,
    SessionExpiredError,
    StorefrontClientError,
)
from storefront_session.http_client import ApiClient, InMemoryNavigator
from storefront_session.refresher import PeriodicRefresher
from storefront_session.route_guard import GuardDecision, evaluate_route
from storefront_session.session import StorefrontSession

__all__ = [
    "ApiClient",
    "ApiConnectionError",
    "ApiHTTPError",
    "ApiResponseError",
    "ApiTimeoutError",
    "GuardDecision",
    "InMemoryNavigator",
    "PeriodicRefresher",
    "SessionConfig",
    "SessionExpiredError",
    "StorefrontClientError",
    "StorefrontSession",
    "__version__",
    "evaluate_route",
    "load_config",
]
