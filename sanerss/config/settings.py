"""
SaneRSS Configuration System
============================

Configuration management with Pydantic models. Values come from, in order of
precedence: constructor arguments, environment variables (``SANERSS_`` prefix,
``__`` as nested delimiter), a ``.env`` file and finally the TOML config file
that declares the feeds.
"""

import os
from pathlib import Path
from typing import List, Dict, Optional, Tuple, Type
from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from ..utils.exceptions import ConfigurationError, ErrorCode


DEFAULT_CONFIG_FILE = "config.toml"

DEFAULT_FILTER_PROMPT = """\
You are an RSS feed filter. Analyze the following RSS post and determine if it matches any of the provided topics.

Post title: {title}
Post description: {description}
Post content excerpt: {content_excerpt}

Accept topics: {accept_topics}
Reject topics: {reject_topics}

Return a JSON response with two boolean fields:
- "accept": true if the post matches any accept topics, otherwise false
- "reject": true if the post matches any reject topics, otherwise false

Both fields can be true at the same time. If both fields are true, the post will be accepted.

You must respond with valid JSON in exactly this format: {"accept": true/false, "reject": true/false}
"""


class AIProvider(str, Enum):
    """Available AI decision providers."""
    OPENAI = "openai"
    GROQ = "groq"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FilterRules(BaseModel):
    """Accept/reject topic lists."""
    accept: List[str] = Field(default_factory=list, description="Topics that make an item acceptable")
    reject: List[str] = Field(default_factory=list, description="Topics that make an item rejectable")

    @field_validator('accept', 'reject', mode='before')
    @classmethod
    def normalize_topics(cls, v):
        """Drop blank topics, treat null as empty."""
        if v is None:
            return []
        return [topic.strip() for topic in v if isinstance(topic, str) and topic.strip()]

    def is_empty(self) -> bool:
        return not self.accept and not self.reject


class FeedSettings(BaseModel):
    """A single upstream feed. The feed name is its key in ``feeds``."""
    url: str = Field(..., description="Feed source URL")
    filters: FilterRules = Field(default_factory=FilterRules, description="Per-feed topics, layered under global ones")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("Feed URL must start with http:// or https://")
        return v


class PollingSettings(BaseModel):
    """Polling pipeline configuration."""
    interval_seconds: int = Field(default=300, ge=1, description="Seconds between poll cycles")
    max_items_per_feed: int = Field(default=60, ge=1, description="Accepted items retained per feed")
    known_items_capacity: int = Field(default=1000, ge=1, description="Identities remembered per feed")
    parallel_feeds: int = Field(default=5, ge=1, le=50, description="Concurrent feed polls")
    prime_on_startup: bool = Field(default=True, description="Poll every feed once before serving")

    @model_validator(mode='after')
    def validate_capacities(self):
        """Known items must outlive eviction from the visible feed."""
        if self.known_items_capacity < self.max_items_per_feed:
            raise ValueError(
                "known_items_capacity must be at least max_items_per_feed"
            )
        return self


class LimitsSettings(BaseModel):
    """Timeouts for outbound calls."""
    request_timeout: int = Field(default=30, ge=1, le=300, description="Feed request timeout in seconds")
    ai_timeout: int = Field(default=60, ge=1, le=600, description="AI decision request timeout in seconds")


class ServerSettings(BaseModel):
    """HTTP serving surface."""
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/sanerss.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class AISettings(BaseModel):
    """AI decision provider configuration."""
    provider: AIProvider = Field(default=AIProvider.OPENAI, description="Decision provider")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI (or compatible) API key")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    model: Optional[str] = Field(default=None, description="Model name, provider default when unset")
    base_url: Optional[str] = Field(default=None, description="OpenAI-compatible endpoint override")
    prompt: str = Field(default=DEFAULT_FILTER_PROMPT, description="Prompt template")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="AI temperature setting")
    max_tokens: int = Field(default=100, ge=10, le=2000, description="Maximum tokens per response")
    max_excerpt_chars: int = Field(default=1000, ge=0, le=20000, description="Content excerpt size sent to the AI")

    def get_api_key(self, provider: Optional[AIProvider] = None) -> Optional[str]:
        """Get API key for the given (or configured) provider."""
        provider = provider or self.provider
        if provider == AIProvider.OPENAI:
            return self.openai_api_key
        elif provider == AIProvider.GROQ:
            return self.groq_api_key
        elif provider == AIProvider.ANTHROPIC:
            return self.anthropic_api_key
        elif provider == AIProvider.GEMINI:
            return self.gemini_api_key
        return None


class SaneRSSSettings(BaseSettings):
    """Main application settings."""

    polling: PollingSettings = Field(default_factory=PollingSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    ai: AISettings = Field(default_factory=AISettings)

    global_filters: FilterRules = Field(default_factory=FilterRules)
    feeds: Dict[str, FeedSettings] = Field(default_factory=dict)
    known_items_file: Path = Field(default=Path("known_items.json"), description="Persisted dedup state")

    app_name: str = Field(default="SaneRSS", description="Application name")
    version: str = Field(default="0.3.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        env_prefix="SANERSS_",
        toml_file=DEFAULT_CONFIG_FILE,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator('feeds')
    @classmethod
    def validate_feed_names(cls, v):
        """Feed names become URL path segments."""
        for name in v:
            if not name or "/" in name or name.strip() != name:
                raise ValueError(f"Invalid feed name: {name!r}")
        return v

    def validate_configuration(self) -> None:
        """Validate cross-section configuration."""
        errors = []

        needs_ai = not self.global_filters.is_empty() or any(
            not feed.filters.is_empty() for feed in self.feeds.values()
        )
        if needs_ai and not self.ai.get_api_key():
            errors.append(
                f"Filters are configured but no API key is set for provider: {self.ai.provider.value}"
            )

        try:
            Path(self.known_items_file).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid known items path: {e}")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def filters_for(self, feed_name: str) -> Tuple[List[str], List[str]]:
        """Merge global and per-feed topics, global first.

        Returns:
            Tuple of (accept_topics, reject_topics)
        """
        accept = list(self.global_filters.accept)
        reject = list(self.global_filters.reject)

        feed = self.feeds.get(feed_name)
        if feed is not None:
            accept.extend(feed.filters.accept)
            reject.extend(feed.filters.reject)

        return accept, reject

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def _settings_class_for(config_path: Path) -> Type[SaneRSSSettings]:
    """Bind the TOML source to a specific file."""

    class _FileBoundSettings(SaneRSSSettings):
        model_config = SettingsConfigDict(toml_file=str(config_path))

    return _FileBoundSettings


def load_settings(config_path: Optional[str] = None, validate: bool = True) -> SaneRSSSettings:
    """Load settings from the TOML file, environment variables and defaults.

    Args:
        config_path: TOML config file. Falls back to ``SANERSS_CONFIG_FILE`` and
            then ``config.toml`` in the working directory.
        validate: Run cross-section validation

    Returns:
        Loaded settings. A relative ``known_items_file`` is resolved against the
        config file's directory.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    path = Path(config_path or os.getenv("SANERSS_CONFIG_FILE", DEFAULT_CONFIG_FILE))
    if config_path and not path.exists():
        raise ConfigurationError(
            f"Config file not found: {path}",
            config_key="config_path",
            error_code=ErrorCode.CONFIG_MISSING,
        )

    try:
        settings = _settings_class_for(path)()
    except ValidationError as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        )
    except ValueError as e:
        # tomllib.TOMLDecodeError is a ValueError
        raise ConfigurationError(
            f"Failed to parse config file {path}: {e}",
            error_code=ErrorCode.CONFIG_PARSE_ERROR
        )

    if not settings.known_items_file.is_absolute():
        settings.known_items_file = path.resolve().parent / settings.known_items_file

    if validate:
        settings.validate_configuration()

    return settings


# Global settings instance
_settings: Optional[SaneRSSSettings] = None


def get_settings(reload: bool = False, config_path: Optional[str] = None) -> SaneRSSSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings
        config_path: Config file used when (re)loading

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings(config_path)

    return _settings
