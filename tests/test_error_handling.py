"""Tests for error handling system."""

from unittest.mock import patch

import pytest

from cmsdev.utils.errors import (
    BuildError,
    CmsDevError,
    ConfigurationError,
    CopyError,
    ErrorHandler,
    HostProcessError,
    PluginError,
    create_error_suggestions,
    format_validation_errors,
)


class TestCmsDevError:
    """Test custom error classes."""

    def test_cmsdev_error_basic(self):
        error = CmsDevError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details is None
        assert error.suggestions == []

    def test_cmsdev_error_with_details(self):
        suggestions = ["Try this", "Or try that"]
        error = CmsDevError("Test error", details="Detailed explanation", suggestions=suggestions)

        assert error.details == "Detailed explanation"
        assert error.suggestions == suggestions

    def test_specific_error_types(self):
        assert isinstance(ConfigurationError("x"), CmsDevError)
        assert isinstance(HostProcessError("x"), CmsDevError)
        assert isinstance(BuildError("x", command=["go"]), PluginError)
        assert isinstance(CopyError("x", path="a"), PluginError)

    def test_build_error_keeps_command(self):
        error = BuildError("Error running 'go build'", command=("go", "build"), details="exit 2")

        assert error.command == ["go", "build"]
        assert error.details == "exit 2"

    def test_copy_error_keeps_path(self):
        error = CopyError("Error copying docs.md", path="/src/docs.md")

        assert error.path == "/src/docs.md"


class TestErrorHandler:
    """Test error handler functionality."""

    def setup_method(self):
        self.handler = ErrorHandler(verbose=False)

    def test_handle_cmsdev_error(self):
        error = CmsDevError(
            "Test error message",
            details="Error details",
            suggestions=["Suggestion 1", "Suggestion 2"],
        )

        with patch("click.echo") as mock_echo:
            self.handler.handle_error(error, "Test context")

        messages = [str(call.args[0]) for call in mock_echo.call_args_list]
        assert messages[0] == "✗ Test error message"
        assert "Context: Test context" in messages
        assert "Details: Error details" in messages
        assert "  • Suggestion 2" in messages

    def test_handle_generic_error_file_not_found(self):
        with patch("click.echo") as mock_echo:
            self.handler.handle_error(FileNotFoundError("test.txt not found"))

        assert "File not found" in str(mock_echo.call_args_list[0])

    def test_handle_generic_error_permission_denied(self):
        with patch("click.echo") as mock_echo:
            self.handler.handle_error(PermissionError("Permission denied for file"))

        assert "Permission denied" in str(mock_echo.call_args_list[0])

    def test_handle_unknown_error(self):
        with patch("click.echo") as mock_echo:
            self.handler.handle_error(RuntimeError("boom"))

        assert "RuntimeError: boom" in str(mock_echo.call_args_list[0])

    def test_verbose_prints_traceback(self):
        handler = ErrorHandler(verbose=True)

        with patch("click.echo"), patch("traceback.print_exc") as mock_traceback:
            handler.handle_error(CmsDevError("boom"))

        mock_traceback.assert_called_once()

    def test_exit_with_error(self):
        with patch("click.echo"):
            with pytest.raises(SystemExit) as exc_info:
                self.handler.exit_with_error(CmsDevError("fatal"), exit_code=3)

        assert exc_info.value.code == 3


class TestErrorUtilities:
    """Test suggestion and formatting helpers."""

    def test_command_not_found_mentions_command(self):
        suggestions = create_error_suggestions("command_not_found", command="go")

        assert "'go'" in suggestions[0]

    def test_unknown_error_type(self):
        assert create_error_suggestions("nothing") == []

    def test_format_validation_errors(self):
        assert format_validation_errors([]) == "No validation errors"
        assert format_validation_errors(["bad"]) == "Validation error: bad"

        formatted = format_validation_errors(["first", "second"])
        assert formatted.startswith("Validation errors:")
        assert "2. second" in formatted
