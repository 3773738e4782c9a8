"""
Tests for the AppError taxonomy.
"""
import pytest

from core.errors import (
    AppError,
    BadResponseError,
    ErrorCategory,
    InvalidatedError,
    InvalidInputError,
    NetworkError,
    NotFoundError,
    ParsingError,
    RequestTimeoutError,
    StorageError,
    UnknownError,
)


class TestMessages:
    def test_bad_response_includes_status(self):
        error = BadResponseError(503)
        assert error.status_code == 503
        assert str(error) == "Server error: 503"

    def test_network_error_includes_cause(self):
        cause = ConnectionError("refused")
        error = NetworkError(cause=cause)
        assert error.cause is cause
        assert "refused" in str(error)

    def test_explicit_message_wins(self):
        assert str(InvalidInputError("bad feed url")) == "bad feed url"

    def test_default_invalid_input(self):
        assert str(InvalidInputError()) == "Invalid URL"


class TestCategories:
    @pytest.mark.parametrize("error,category,title", [
        (RequestTimeoutError(), ErrorCategory.NETWORK, "Network Error"),
        (NetworkError(), ErrorCategory.NETWORK, "Network Error"),
        (BadResponseError(500), ErrorCategory.NETWORK, "Network Error"),
        (ParsingError(), ErrorCategory.CONTENT, "Content Error"),
        (StorageError(), ErrorCategory.DATA, "Data Error"),
        (NotFoundError(), ErrorCategory.DATA, "Data Error"),
        (InvalidatedError(), ErrorCategory.DATA, "Data Error"),
        (InvalidInputError(), ErrorCategory.GENERAL, "Error"),
        (UnknownError(), ErrorCategory.GENERAL, "Error"),
    ])
    def test_category_and_title(self, error, category, title):
        assert isinstance(error, AppError)
        assert error.category is category
        assert error.title == title


class TestUserMessage:
    def test_includes_recovery_suggestion(self):
        error = RequestTimeoutError()
        assert error.user_message == (
            "The request timed out\n\nCheck your internet connection and try again."
        )

    def test_without_recovery_suggestion(self):
        assert NotFoundError().user_message == "Item not found"
