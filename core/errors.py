"""
Error taxonomy for the news consolidator.

Every failure surfaced to callers is an ``AppError`` subclass. Each carries a
coarse category plus presentation strings (title, failure reason, recovery
suggestion) so a UI layer can show a sensible alert without inspecting types.
"""
from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    NETWORK = "network"
    CONTENT = "content"
    DATA = "data"
    GENERAL = "general"


_TITLES = {
    ErrorCategory.NETWORK: "Network Error",
    ErrorCategory.CONTENT: "Content Error",
    ErrorCategory.DATA: "Data Error",
    ErrorCategory.GENERAL: "Error",
}


class AppError(Exception):
    """Base class for all application errors."""

    category: ErrorCategory = ErrorCategory.GENERAL
    failure_reason: Optional[str] = None
    recovery_suggestion: Optional[str] = None

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message or self.default_message())

    def default_message(self) -> str:
        return "An error occurred"

    @property
    def description(self) -> str:
        return str(self)

    @property
    def title(self) -> str:
        return _TITLES[self.category]

    @property
    def user_message(self) -> str:
        """Description followed by the recovery hint, when there is one."""
        if self.recovery_suggestion:
            return f"{self.description}\n\n{self.recovery_suggestion}"
        return self.description


class InvalidInputError(AppError):
    category = ErrorCategory.GENERAL
    failure_reason = "The request could not be built"
    recovery_suggestion = "Check the feed address."

    def default_message(self) -> str:
        return "Invalid URL"


class RequestTimeoutError(AppError):
    category = ErrorCategory.NETWORK
    failure_reason = "The server took too long to respond"
    recovery_suggestion = "Check your internet connection and try again."

    def default_message(self) -> str:
        return "The request timed out"


class NetworkError(AppError):
    category = ErrorCategory.NETWORK
    failure_reason = "Unable to connect to the server"
    recovery_suggestion = "Check your internet connection and try again."

    def default_message(self) -> str:
        if self.cause is not None:
            return f"Network error: {self.cause}"
        return "Network error"


class BadResponseError(AppError):
    category = ErrorCategory.NETWORK
    failure_reason = "The server returned an unexpected response"
    recovery_suggestion = "Try again later."

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message)

    def default_message(self) -> str:
        return f"Server error: {self.status_code}"


class ParsingError(AppError):
    category = ErrorCategory.CONTENT
    failure_reason = "The feed content is malformed"
    recovery_suggestion = "Try again later."

    def default_message(self) -> str:
        return "Failed to parse the feed"


class StorageError(AppError):
    category = ErrorCategory.DATA
    failure_reason = "Unable to read or write local data"
    recovery_suggestion = "Restart the application. If the problem persists, clear local data."

    def default_message(self) -> str:
        if self.cause is not None:
            return f"Storage error: {self.cause}"
        return "Storage error"


class NotFoundError(AppError):
    category = ErrorCategory.DATA
    failure_reason = "The requested item does not exist"

    def default_message(self) -> str:
        return "Item not found"


class InvalidatedError(AppError):
    category = ErrorCategory.DATA
    failure_reason = "The store was closed"
    recovery_suggestion = "Restart the application."

    def default_message(self) -> str:
        return "The store is no longer valid"


class UnknownError(AppError):
    category = ErrorCategory.GENERAL

    def default_message(self) -> str:
        if self.cause is not None:
            return f"Unexpected error: {self.cause}"
        return "An unexpected error occurred"
