"""
Global configuration for the Vectorify SDK.

This module provides a simple configuration system following Convention over Configuration (CoC).
Users can optionally call VECTORIFY.configure() at application startup to customize defaults.
If not called, sensible defaults are used.

Hierarchy of precedence (highest to lowest):
1. Arguments passed to client constructors
2. Values set via VECTORIFY.configure()
3. Environment variables (VECTORIFY_*) - when allow_env_override=True
4. Hardcoded defaults (in dataclass fields)

Example:
    >>> from vectorify import VECTORIFY
    >>>
    >>> # Pre-loaded with defaults + env vars
    >>> timeout = VECTORIFY.config.client.request_timeout
    >>>
    >>> # Custom configuration
    >>> VECTORIFY.configure(
    ...     client={"api_key": "my-key", "request_timeout": 60},
    ...     rate_limit={"redis_url": "redis://localhost:6379/0"},
    ... )
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Any, Self

# =============================================================================
# Exceptions
# =============================================================================


class ConfigEnvVarError(ValueError):
    """Raised when an environment variable has an invalid value."""

    def __init__(
        self,
        env_var: str,
        value: str,
        expected_type: str,
        cause: Exception | None = None,
    ):
        self.env_var = env_var
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Invalid value for {env_var}: '{value}' (expected {expected_type})")
        self.__cause__ = cause


class ConfigValidationError(ValueError):
    """
    Raised when a configuration value fails validation.

    This is the error for invalid client configuration (e.g. empty API key or
    non-positive timeout). It is raised at construction time and never retried.
    """

    def __init__(
        self,
        field: str,
        value: Any,
        message: str,
        section: str | None = None,
    ):
        self.field = field
        self.value = value
        self.section = section
        prefix = f"[{section}] " if section else ""
        super().__init__(f"{prefix}Invalid value for '{field}': {value!r}. {message}")


# =============================================================================
# Environment Variables
# =============================================================================


class EnvVars:
    """
    Utility class for reading environment variables with type conversion.

    Example:
        >>> EnvVars.get("VECTORIFY_CLIENT_REQUEST_TIMEOUT", type_hint=int)
        30
        >>> EnvVars.get("UNDEFINED_VAR")
        None
    """

    @staticmethod
    def get(
        var_name: str,
        type_hint: Any = str,
        converter: Callable[[str], Any] | None = None,
    ) -> Any:
        """
        Read an environment variable with optional type conversion.

        Args:
            var_name: The environment variable name.
            type_hint: Type hint used to infer the converter (ignored if converter is provided).
            converter: Custom converter function (takes precedence over type_hint).

        Returns:
            The converted value, or None if env var is not set/empty.

        Raises:
            ConfigEnvVarError: If the value cannot be converted.
        """
        raw_value = os.environ.get(var_name)
        if not raw_value:
            return None

        actual_converter = converter or EnvVars._infer_converter(type_hint)
        try:
            return actual_converter(raw_value)
        except (ValueError, TypeError) as e:
            raise ConfigEnvVarError(
                env_var=var_name,
                value=raw_value,
                expected_type=type_hint.__name__ if hasattr(type_hint, "__name__") else str(type_hint),
                cause=e,
            ) from e

    @staticmethod
    def _infer_converter(type_hint: Any) -> Callable[[str], Any]:
        """
        Infer converter function from type hint.

        Handles both actual types and string annotations (PEP 563).
        """
        type_str = str(type_hint)

        if type_hint is int or type_str == "int":
            return int
        if type_hint is float or type_str == "float":
            return float
        if type_hint is bool or type_str == "bool":
            return lambda v: v.lower() in ("true", "1", "yes")
        return str


# =============================================================================
# Base Class
# =============================================================================


@dataclass(frozen=True)
class OverridableConfig:
    """
    Base class for immutable configuration dataclasses.

    Provides `.with_overrides()` for creating new instances with partial field
    updates, and `.with_env_vars()` for applying the env vars declared in
    field metadata.

    Example:
        >>> config = ClientConfig()
        >>> custom = config.with_overrides({"request_timeout": 60})
        >>> custom.request_timeout
        60
    """

    def with_overrides(self, overrides: dict[str, Any]) -> Self:
        """
        Return a new instance with specified fields overridden.

        None values are ignored, so partially-filled dicts can be passed as-is.

        Raises:
            ValueError: If overrides contains unknown field names.
        """
        if not overrides:
            return self

        valid_fields = {f.name for f in fields(self)}
        invalid_fields = set(overrides.keys()) - valid_fields

        if invalid_fields:
            raise ValueError(
                f"Unknown config fields: {invalid_fields}. "
                f"Valid fields are: {valid_fields}"
            )

        filtered = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered) if filtered else self

    def with_env_vars(self) -> Self:
        """
        Return new instance with environment variables applied.

        Raises:
            ConfigEnvVarError: If an env var has an invalid value.
        """
        overrides: dict[str, Any] = {}
        for f in fields(self):
            env_var = f.metadata.get("env")
            if env_var:
                value = EnvVars.get(var_name=env_var, type_hint=f.type)
                if value is not None:
                    overrides[f.name] = value
        return self.with_overrides(overrides)


def _is_http_url(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class ClientConfig(OverridableConfig):
    """
    Configuration for the Vectorify HTTP client.

    Attributes:
        api_key: Vectorify API key, sent as the `Api-Key` header.
            Env var: VECTORIFY_API_KEY

        base_url: Base URL for the Vectorify API.
            Env var: VECTORIFY_BASE_URL

        request_timeout: HTTP request timeout in seconds.
            Env var: VECTORIFY_CLIENT_REQUEST_TIMEOUT

        max_attempts: Maximum physical attempts per logical call (1 = no retry).
            Env var: VECTORIFY_CLIENT_MAX_ATTEMPTS

        backoff_factor: Base delay for server-error/transport backoff.
            Delay before attempt N+1 = backoff_factor * 2 ** (N - 1), capped at max_backoff.
            Example: with 1.0, retries wait 1s, 2s, 4s...
            Env var: VECTORIFY_CLIENT_BACKOFF_FACTOR

        max_backoff: Upper bound in seconds for a single backoff delay.
            Env var: VECTORIFY_CLIENT_MAX_BACKOFF

    Example:
        >>> from vectorify import VECTORIFY
        >>> VECTORIFY.config.client.max_attempts
        3
    """

    api_key: str | None = field(default=None, repr=False, metadata={"env": "VECTORIFY_API_KEY"})
    base_url: str = field(default="https://api.vectorify.ai/v1/", metadata={"env": "VECTORIFY_BASE_URL"})
    request_timeout: int = field(default=30, metadata={"env": "VECTORIFY_CLIENT_REQUEST_TIMEOUT"})
    max_attempts: int = field(default=3, metadata={"env": "VECTORIFY_CLIENT_MAX_ATTEMPTS"})
    backoff_factor: float = field(default=1.0, metadata={"env": "VECTORIFY_CLIENT_BACKOFF_FACTOR"})
    max_backoff: float = field(default=60.0, metadata={"env": "VECTORIFY_CLIENT_MAX_BACKOFF"})

    def validate(self) -> Self:
        """Validate client configuration fields."""
        if self.api_key is not None and not self.api_key.strip():
            raise ConfigValidationError(
                "api_key", self.api_key,
                "API key cannot be empty.", section="client"
            )
        if not self.base_url or not _is_http_url(self.base_url):
            raise ConfigValidationError(
                "base_url", self.base_url,
                "Must start with 'http://' or 'https://'.", section="client"
            )
        if self.request_timeout <= 0:
            raise ConfigValidationError(
                "request_timeout", self.request_timeout,
                "Timeout must be positive.", section="client"
            )
        if self.max_attempts <= 0:
            raise ConfigValidationError(
                "max_attempts", self.max_attempts,
                "Must be greater than 0.", section="client"
            )
        if self.backoff_factor <= 0:
            raise ConfigValidationError(
                "backoff_factor", self.backoff_factor,
                "Must be greater than 0.", section="client"
            )
        if self.max_backoff <= 0:
            raise ConfigValidationError(
                "max_backoff", self.max_backoff,
                "Must be greater than 0.", section="client"
            )
        return self


@dataclass(frozen=True)
class RateLimitConfig(OverridableConfig):
    """
    Configuration for server-quota tracking and cross-process coordination.

    The thresholds and caps below were hand-tuned against the Vectorify API and
    are exposed so they can be adjusted without code changes.

    Attributes:
        enabled: Whether to track the server quota at all.
            Env var: VECTORIFY_RATE_LIMIT_ENABLED

        cache_key: Coordination key shared by every process using the same quota.
            Env var: VECTORIFY_RATE_LIMIT_CACHE_KEY

        redis_url: If set, clients share quota state through Redis at this URL.
            Env var: VECTORIFY_RATE_LIMIT_REDIS_URL

        default_wait: Seconds until quota reset when the server sends no Retry-After.
            Env var: VECTORIFY_RATE_LIMIT_DEFAULT_WAIT

        max_wait: Longest single suspension (critical band and 429 cooldown).
            Env var: VECTORIFY_RATE_LIMIT_MAX_WAIT

        ttl_buffer: Extra seconds a stored state outlives its reset time.
            Env var: VECTORIFY_RATE_LIMIT_TTL_BUFFER

        critical_threshold: Remaining quota at or below which callers wait for the full reset.
            Env var: VECTORIFY_RATE_LIMIT_CRITICAL_THRESHOLD

        low_threshold: Remaining quota at or below which preventive delays start.
            Env var: VECTORIFY_RATE_LIMIT_LOW_THRESHOLD

        medium_threshold: Upper bound of the medium band.
            Env var: VECTORIFY_RATE_LIMIT_MEDIUM_THRESHOLD

        max_low_wait: Cap for the low band delay (wait / 2).
            Env var: VECTORIFY_RATE_LIMIT_MAX_LOW_WAIT

        max_medium_wait: Cap for the medium band delay (wait / 4).
            Env var: VECTORIFY_RATE_LIMIT_MAX_MEDIUM_WAIT

    Example:
        >>> from vectorify import VECTORIFY
        >>> VECTORIFY.configure(
        ...     rate_limit={
        ...         "redis_url": "redis://cache:6379/0",
        ...         "cache_key": "my-app:vectorify:rate_limit",
        ...     }
        ... )
    """

    enabled: bool = field(default=True, metadata={"env": "VECTORIFY_RATE_LIMIT_ENABLED"})
    cache_key: str = field(default="api:rate_limit", metadata={"env": "VECTORIFY_RATE_LIMIT_CACHE_KEY"})
    redis_url: str | None = field(default=None, metadata={"env": "VECTORIFY_RATE_LIMIT_REDIS_URL"})
    default_wait: float = field(default=90.0, metadata={"env": "VECTORIFY_RATE_LIMIT_DEFAULT_WAIT"})
    max_wait: float = field(default=90.0, metadata={"env": "VECTORIFY_RATE_LIMIT_MAX_WAIT"})
    ttl_buffer: int = field(default=10, metadata={"env": "VECTORIFY_RATE_LIMIT_TTL_BUFFER"})
    # Remaining-quota bands
    critical_threshold: int = field(default=0, metadata={"env": "VECTORIFY_RATE_LIMIT_CRITICAL_THRESHOLD"})
    low_threshold: int = field(default=2, metadata={"env": "VECTORIFY_RATE_LIMIT_LOW_THRESHOLD"})
    medium_threshold: int = field(default=5, metadata={"env": "VECTORIFY_RATE_LIMIT_MEDIUM_THRESHOLD"})
    max_low_wait: float = field(default=30.0, metadata={"env": "VECTORIFY_RATE_LIMIT_MAX_LOW_WAIT"})
    max_medium_wait: float = field(default=10.0, metadata={"env": "VECTORIFY_RATE_LIMIT_MAX_MEDIUM_WAIT"})

    def validate(self) -> Self:
        """Validate rate limit configuration fields."""
        if not self.cache_key:
            raise ConfigValidationError(
                "cache_key", self.cache_key,
                "Must not be empty.", section="rate_limit"
            )
        if self.redis_url is not None and not self.redis_url.startswith(("redis://", "rediss://", "unix://")):
            raise ConfigValidationError(
                "redis_url", self.redis_url,
                "Must start with 'redis://', 'rediss://' or 'unix://'.", section="rate_limit"
            )
        for name in ("default_wait", "max_wait", "max_low_wait", "max_medium_wait"):
            if getattr(self, name) <= 0:
                raise ConfigValidationError(
                    name, getattr(self, name),
                    "Must be greater than 0.", section="rate_limit"
                )
        if self.ttl_buffer < 0:
            raise ConfigValidationError(
                "ttl_buffer", self.ttl_buffer,
                "Must be >= 0.", section="rate_limit"
            )
        if not (self.critical_threshold <= self.low_threshold <= self.medium_threshold):
            raise ConfigValidationError(
                "low_threshold", self.low_threshold,
                "Thresholds must satisfy critical_threshold <= low_threshold <= medium_threshold.",
                section="rate_limit",
            )
        return self


@dataclass(frozen=True)
class VectorifyConfig:
    """
    Global configuration for the Vectorify SDK.

    Aggregates all configuration sections. Access via the global `VECTORIFY.config` property.

    Attributes:
        client: HTTP client configuration.
        rate_limit: Quota tracking configuration.
    """

    client: ClientConfig = field(default_factory=ClientConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    def with_env_vars(self) -> VectorifyConfig:
        """Return a new config with VECTORIFY_* environment variables applied on top."""
        return VectorifyConfig(
            client=self.client.with_env_vars(),
            rate_limit=self.rate_limit.with_env_vars(),
        )

    def with_section_overrides(
        self,
        *,
        client: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
    ) -> VectorifyConfig:
        """
        Return a new config with overrides applied to nested sections.

        Example:
            >>> config = VectorifyConfig().with_section_overrides(
            ...     client={"request_timeout": 60},
            ... )
        """
        return VectorifyConfig(
            client=self.client.with_overrides(client or {}),
            rate_limit=self.rate_limit.with_overrides(rate_limit or {}),
        )


# =============================================================================
# Global Configuration Singleton
# =============================================================================


class _Vectorify:
    """
    Singleton for SDK configuration.

    Use `VECTORIFY.configure()` to customize settings and `VECTORIFY.config`
    to access current configuration.

    Example:
        >>> from vectorify import VECTORIFY
        >>> VECTORIFY.configure(client={"api_key": "..."})
        >>> print(VECTORIFY.config.client.request_timeout)
    """

    def __init__(self) -> None:
        self._config: VectorifyConfig = VectorifyConfig().with_env_vars()

    def configure(
        self,
        *,
        client: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
        allow_env_override: bool = True,
    ) -> VectorifyConfig:
        """
        Configure SDK settings.

        Call at application startup to customize defaults.

        Args:
            client: Client config overrides (api_key, timeouts, attempts, backoff).
            rate_limit: Rate limiting config overrides (cache_key, redis_url, thresholds...).
            allow_env_override: If True (default), env vars are used as fallback
                for fields NOT provided. If False, ignores env vars entirely.

        Returns:
            The configured VectorifyConfig instance.

        Raises:
            ValueError: If any dict contains unknown field names.
            ConfigValidationError: If any config value fails validation.
        """
        base = VectorifyConfig()
        if allow_env_override:
            base = base.with_env_vars()

        self._config = base.with_section_overrides(client=client, rate_limit=rate_limit)
        return self.validate()

    @property
    def config(self) -> VectorifyConfig:
        """Access current configuration (read-only)."""
        return self._config

    def reset(self) -> VectorifyConfig:
        """
        Reset configuration to defaults + env vars.

        Useful for testing to ensure clean state between tests.
        """
        self._config = VectorifyConfig().with_env_vars()
        return self.validate()

    def validate(self) -> VectorifyConfig:
        """
        Validate current configuration.

        Raises:
            ConfigValidationError: If any config value is invalid.
        """
        self._config.client.validate()
        self._config.rate_limit.validate()
        return self._config

    def __repr__(self) -> str:
        return f"VECTORIFY(config={self._config!r})"


# Global singleton instance - always reflects current configuration
VECTORIFY: _Vectorify = _Vectorify()
VECTORIFY.validate()
