"""Configuration for the storefront session layer."""

from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_PROTECTED_PREFIXES = [
    "/dashboard",
    "/profile",
    "/orders",
    "/wishlist",
    "/checkout",
]

DEFAULT_AUTH_ENTRY_PATHS = [
    "/auth/login",
    "/auth/register",
    "/auth/forgot-password",
    "/auth/reset-password",
    "/auth/verify",
]


class SessionConfig(BaseSettings):
    """Settings shared by the API client, refresher, route guard and hydration."""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_url: str = Field(
        default="http://localhost:5001/api/v1",
        description="Base API URL",
    )
    refresh_path: str = Field(default="/auth/refresh-token")
    me_path: str = Field(default="/auth/me")
    logout_path: str = Field(default="/auth/logout")
    request_timeout: float = Field(default=30.0, gt=0)
    connect_timeout: float = Field(default=5.0, gt=0)

    # Session cookies (names only, values are never inspected)
    access_cookie: str = Field(default="accessToken")
    refresh_cookie: str = Field(default="refreshToken")

    # Routing
    login_path: str = Field(default="/auth/login", description="Login entry point")
    redirect_param: str = Field(
        default="redirect",
        description="Query parameter carrying the originally requested path",
    )
    protected_prefixes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_PREFIXES),
    )
    auth_entry_paths: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_AUTH_ENTRY_PATHS),
    )

    # Periodic refresh (seconds)
    refresh_interval: float = Field(
        default=600,
        gt=0,
        description="Proactive refresh period in seconds",
    )
    coalesce_refresh: bool = Field(
        default=False,
        description="Share one in-flight refresh between concurrent 401s",
    )

    # Guest state
    guest_cart_path: Path = Field(
        default=Path.home() / ".config" / "storefront" / "guest-cart.json",
    )

    # Logging
    log_level: str = Field(default="INFO")

    @field_validator("protected_prefixes", "auth_entry_paths", mode="before")
    @classmethod
    def _split_paths(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v

    @field_validator("protected_prefixes", "auth_entry_paths")
    @classmethod
    def _require_absolute(cls, v: list[str]) -> list[str]:
        for path in v:
            if not path.startswith("/"):
                raise ConfigurationError(f"Route paths must start with '/': {path!r}")
        return v

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "storefront" / "session.toml"


def load_config(config_file: str | Path | None = None) -> SessionConfig:
    """Load configuration from a TOML file, with environment variable overrides.

    Priority (highest to lowest):
    1. Environment variables (STOREFRONT_*)
    2. Provided config file
    3. Default config file (~/.config/storefront/session.toml)
    4. Default values

    Args:
        config_file: Optional path to a config file

    Returns:
        Loaded configuration
    """
    import tomllib

    config_path = Path(config_file) if config_file else DEFAULT_CONFIG_PATH

    file_config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
            file_config = data.get("storefront", {})

    # Init kwargs outrank env in pydantic-settings, so drop the ones env sets.
    env_settings = SessionConfig()
    overridden = env_settings.model_fields_set
    return SessionConfig(**{k: v for k, v in file_config.items() if k not in overridden})
