"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ResolverConfig(BaseModel):
    """Configuration for the HubCloud / HDHub4u link resolvers.

    Request headers and cookies are passed to every resolver explicitly,
    so tests can substitute their own values.
    """

    user_agent: str = Field(
        default=_BROWSER_USER_AGENT,
        description="Browser User-Agent sent to the source sites.",
    )
    accept: str = Field(
        default="text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        description="Accept header for page fetches.",
    )
    accept_language: str = Field(default="en-US,en;q=0.5")
    referer: str = Field(
        default="https://hubcloud.lol/",
        description="Default Referer for hubcloud page fetches.",
    )
    cookies: str = Field(
        default="xyt=2; ads-counter-97455=0-1",
        description="Cookie header the hubcloud pages expect.",
    )

    resolve_timeout_seconds: float = Field(
        default=60.0,
        description="Upper bound for one whole resolution, mandated waits included.",
    )
    wait_margin_seconds: float = Field(
        default=3.0,
        description="Seconds added to the redirect page countdown before fetching.",
    )
    max_redirect_attempts: int = Field(
        default=5,
        description="Total fetches of a redirect hop while it answers 'Invalid Request'.",
    )
    retry_delay_seconds: float = Field(
        default=2.0,
        description="Fixed delay between rejected redirect fetches.",
    )
    probe_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for HEAD probes and secondary lookups of single anchors.",
    )
    redirect_api_url: str = Field(
        default="https://net-cookie-kacj.vercel.app/api/redirect",
        description="Secondary service resolving gpdl.hubcdn.fans links.",
    )

    @field_validator("resolve_timeout_seconds", "probe_timeout_seconds")
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("max_redirect_attempts")
    @classmethod
    def _validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_redirect_attempts must be >= 1")
        return v

    @field_validator("wait_margin_seconds", "retry_delay_seconds")
    @classmethod
    def _validate_delays(cls, v: float) -> float:
        if v < 0:
            raise ValueError("delays must be >= 0")
        return v

    def page_headers(
        self,
        *,
        with_cookies: bool = False,
        referer: str | None = None,
    ) -> dict[str, str]:
        """Browser-like headers for fetching a source page."""
        headers = {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
            "Referer": referer or self.referer,
        }
        if with_cookies and self.cookies:
            headers["Cookie"] = self.cookies
        return headers


class AppConfig(BaseModel):
    """Validated configuration for the resolver service.

    Accepts both the sectioned YAML shape (``http.timeout_seconds``) and flat
    keys (``http_timeout_seconds``).  Layering happens in load.py; this model
    only validates the merged result.
    """

    # General
    app_name: str = Field(default="hublinks", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment; prod switches the default log format to JSON.",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Per-request HTTP timeout in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the shared HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="hublinks/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Fallback User-Agent of the shared HTTP client.",
    )

    # API (YAML section: api.*)
    api_keys: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "api_keys",
            AliasPath("api", "keys"),
        ),
        description="Accepted API keys. Empty list disables the key check.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "console or json. Derived from environment when unset."
        ),
    )

    # Resolvers (YAML section: resolver.*)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("api_keys", mode="before")
    @classmethod
    def _split_api_keys(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Unset format: JSON lines in prod, human readable elsewhere.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Sectioned view for startup logs; API keys are shortened to a prefix."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "api": {"keys": [f"{k[:4]}..." for k in self.api_keys]},
            "logging": {"level": self.log_level, "format": self.log_format},
            "resolver": self.resolver.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """``HUBLINKS_*`` environment variables, all optional.

    Only variables that are set end up in the env layer of load_config.
    Examples:
    - HUBLINKS_HTTP_TIMEOUT_SECONDS
    - HUBLINKS_API_KEYS (comma separated)
    - HUBLINKS_RESOLVE_TIMEOUT_SECONDS
    - HUBLINKS_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="HUBLINKS_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    # Plain string so pydantic-settings does not expect JSON.
    api_keys: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    resolve_timeout_seconds: Optional[float] = None
    redirect_api_url: Optional[str] = None
    resolver_cookies: Optional[str] = None
    resolver_user_agent: Optional[str] = None
    max_redirect_attempts: Optional[int] = None

    def to_update_dict(self) -> dict[str, Any]:
        """Values that were set, keyed by their flat name."""
        return self.model_dump(exclude_none=True)
