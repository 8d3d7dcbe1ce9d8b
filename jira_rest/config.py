"""Configuration management for the Jira REST client using Pydantic Settings."""

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jira_rest.errors import ConfigError
from jira_rest.utils.auth import (
    BasicCredential,
    BearerCredential,
    Credential,
    NoCredential,
    OAuth1Credential,
    SignatureMethod,
)

_OAUTH_FIELDS = (
    "oauth_consumer_key",
    "oauth_consumer_secret",
    "oauth_access_token",
    "oauth_access_token_secret",
)


class JiraConfig(BaseSettings):
    """Jira client configuration.

    All settings can be configured via environment variables with the JIRA_
    prefix. At most one credential scheme may be configured: username and
    password, the OAuth1 bundle, or a bearer token. With none of them the
    client sends unauthenticated requests.
    """

    model_config = SettingsConfigDict(
        env_prefix="JIRA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Required settings
    host: str = Field(
        ...,
        description="Jira host name without protocol (e.g., jira.example.com)",
    )

    # URL settings
    protocol: Literal["http", "https"] = Field(
        default="http",
        description="Protocol used to reach Jira",
    )
    port: Optional[int] = Field(
        default=None,
        description="Port; always written into the URL when set",
        ge=1,
        le=65535,
    )
    base: str = Field(
        default="",
        description="Path prefix before the rest/ section (e.g., jira)",
    )
    api_version: str = Field(
        default="2",
        description="Classic REST API version",
    )
    intermediate_path: Optional[str] = Field(
        default=None,
        description="Replaces the default rest/api/{version} section",
    )
    webhook_version: str = Field(
        default="1.0",
        description="Webhook API version",
    )
    greenhopper_version: str = Field(
        default="1.0",
        description="Greenhopper API version",
    )

    # Transport settings
    strict_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates",
    )
    timeout: float = Field(
        default=30,
        description="Request timeout in seconds",
        gt=0,
        le=300,
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    # Credentials
    username: Optional[str] = Field(default=None, description="Basic auth username")
    password: Optional[str] = Field(
        default=None,
        description="Basic auth password (API token for Atlassian Cloud)",
    )
    bearer: Optional[str] = Field(
        default=None,
        description="OAuth bearer token or Personal Access Token",
    )
    oauth_consumer_key: Optional[str] = Field(default=None)
    oauth_consumer_secret: Optional[str] = Field(
        default=None,
        description="Consumer secret, or the RSA private key for RSA-SHA1",
    )
    oauth_access_token: Optional[str] = Field(default=None)
    oauth_access_token_secret: Optional[str] = Field(default=None)
    oauth_signature_method: SignatureMethod = Field(default="RSA-SHA1")

    def __init__(self, **values: Any) -> None:
        """Load settings from the environment, ``.env`` and keyword overrides.

        Raises:
            ConfigError: If the configuration is invalid
        """
        try:
            super().__init__(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid Jira configuration: {e}") from e

    @field_validator(
        "username", "password", "bearer", "intermediate_path", *_OAUTH_FIELDS, mode="before"
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("api_version", "webhook_version", "greenhopper_version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        """Accept numeric versions (e.g. api_version=2)."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Ensure host carries no protocol or path."""
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("Host must not be empty")
        if "://" in v:
            raise ValueError("Host must not include a protocol; set JIRA_PROTOCOL instead")
        return v

    @field_validator("base")
    @classmethod
    def validate_base(cls, v: str) -> str:
        """Normalize base path to have no surrounding slashes."""
        return v.strip().strip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v_upper

    @model_validator(mode="after")
    def check_credentials(self) -> "JiraConfig":
        """Fail fast on missing or contradictory credentials."""
        _resolve_credential(self)
        return self

    @property
    def credential(self) -> Credential:
        """The single credential scheme this configuration selects."""
        return _resolve_credential(self)

    @property
    def auth_scheme(self) -> str:
        """Name of the configured credential scheme."""
        return self.credential.kind

    @property
    def server_url(self) -> str:
        """Root URL of the Jira instance, base path included."""
        port = f":{self.port}" if self.port is not None else ""
        base = f"/{self.base}" if self.base else ""
        return f"{self.protocol}://{self.host}{port}{base}"


def _resolve_credential(config: JiraConfig) -> Credential:
    basic = config.username is not None or config.password is not None
    oauth = any(getattr(config, name) is not None for name in _OAUTH_FIELDS)
    bearer = config.bearer is not None

    schemes = [
        name for name, present in (("basic", basic), ("oauth1", oauth), ("bearer", bearer)) if present
    ]
    if len(schemes) > 1:
        raise ConfigError(
            f"Configure exactly one credential scheme, got: {', '.join(schemes)}"
        )

    if basic:
        if config.username is None or config.password is None:
            raise ConfigError("Basic authentication requires both username and password")
        return BasicCredential(username=config.username, password=config.password)

    if oauth:
        missing = [name for name in _OAUTH_FIELDS if getattr(config, name) is None]
        if missing:
            raise ConfigError(f"Incomplete OAuth1 configuration, missing: {', '.join(missing)}")
        return OAuth1Credential(
            consumer_key=config.oauth_consumer_key,
            consumer_secret=config.oauth_consumer_secret,
            access_token=config.oauth_access_token,
            access_token_secret=config.oauth_access_token_secret,
            signature_method=config.oauth_signature_method,
        )

    if bearer:
        return BearerCredential(token=config.bearer)

    return NoCredential()


def load_config(**overrides: Any) -> JiraConfig:
    """Build a configuration from the environment plus keyword overrides.

    Raises:
        ConfigError: If the configuration is invalid
    """
    return JiraConfig(**overrides)


@lru_cache
def get_config() -> JiraConfig:
    """Get cached configuration singleton."""
    return load_config()
