"""
SaneRSS Custom Exceptions
=========================

Exception hierarchy for SaneRSS with error codes, context information and
user-friendly messages.

Error kinds handled by the polling pipeline:
- Transient-Ignorable: FeedFetchError, AIError (logged, step skipped)
- Persistence-Soft: PersistenceError (logged, in-memory state stays authoritative)
- Persistence-Hard: CacheCorruptionError (fatal at startup)
- Programming-Invariant: FeedNotInitializedError (a defect, never caught)
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"
    CONFIG_PARSE_ERROR = "C003"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_HTTP_STATUS = "F005"

    # AI decision errors (A001-A099)
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A003"
    AI_TIMEOUT = "A004"
    AI_PROVIDER_UNAVAILABLE = "A008"
    AI_INVALID_CREDENTIALS = "A009"
    AI_CONNECTION_ERROR = "A010"

    # Storage errors (S001-S099)
    STORAGE_WRITE_FAILED = "S001"
    STORAGE_READ_FAILED = "S002"
    STORAGE_CORRUPTED = "S003"
    FEED_NOT_INITIALIZED = "S004"
    PROCESS_LOCKED = "S005"


class SaneRSSError(Exception):
    """Base exception for all SaneRSS errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize SaneRSS error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(SaneRSSError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
        )


class FeedError(SaneRSSError):
    """Feed ingestion and parsing errors."""

    def __init__(
        self,
        message: str,
        feed_name: Optional[str] = None,
        feed_url: Optional[str] = None,
        **kwargs,
    ):
        """Initialize feed error.

        Args:
            message: Error message
            feed_name: Configured feed name
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for SaneRSSError
        """
        context = kwargs.get("context", {})
        if feed_name:
            context["feed_name"] = feed_name
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", True),
        )


class FeedFetchError(FeedError):
    """RSS feed fetching errors (network, HTTP status, parse)."""

    pass


class AIError(SaneRSSError):
    """AI decision provider errors."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        """Initialize AI error.

        Args:
            message: Error message
            provider: AI provider name (e.g., 'openai', 'groq')
            **kwargs: Additional arguments for SaneRSSError
        """
        context = kwargs.get("context", {})
        if provider:
            context["ai_provider"] = provider

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.AI_API_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", "AI filtering temporarily unavailable"
            ),
            recoverable=kwargs.get("recoverable", True),
        )
        self.provider = provider


class StorageError(SaneRSSError):
    """Feed store and known-item cache errors."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if path:
            context["path"] = path

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.STORAGE_WRITE_FAILED),
            context=context,
            user_message=kwargs.get("user_message", "Storage operation failed"),
            recoverable=kwargs.get("recoverable", True),
        )


class PersistenceError(StorageError):
    """Known-item cache could not be written to disk."""

    pass


class CacheCorruptionError(StorageError):
    """Persisted known-item cache exists but cannot be deserialized."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            path=path,
            error_code=kwargs.get("error_code", ErrorCode.STORAGE_CORRUPTED),
            user_message=kwargs.get(
                "user_message", "Known items file is corrupted, refusing to start"
            ),
            recoverable=False,
        )


class FeedNotInitializedError(StorageError):
    """Items were appended to a feed that was never created."""

    def __init__(self, feed_name: str):
        super().__init__(
            f"Feed '{feed_name}' was not initialized before appending items",
            error_code=ErrorCode.FEED_NOT_INITIALIZED,
            context={"feed_name": feed_name},
            recoverable=False,
        )
        self.feed_name = feed_name


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, SaneRSSError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
