"""Error handling utilities for cmsdev."""

import sys
import traceback
from typing import List, Optional, Sequence

import click


class CmsDevError(Exception):
    """Base exception for cmsdev errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestions: Optional[list] = None,
    ):
        self.message = message
        self.details = details
        self.suggestions = suggestions or []
        super().__init__(message)


class ConfigurationError(CmsDevError):
    """Raised when configuration is invalid or missing."""

    pass


class PluginError(CmsDevError):
    """Raised when plugin operations fail."""

    pass


class BuildError(PluginError):
    """Raised when an external generate/build command fails."""

    def __init__(self, message: str, command: Sequence[str], **kwargs):
        self.command = list(command)
        super().__init__(message, **kwargs)


class CopyError(PluginError):
    """Raised when a file cannot be copied into the plugin directory."""

    def __init__(self, message: str, path: str, **kwargs):
        self.path = path
        super().__init__(message, **kwargs)


class HostProcessError(CmsDevError):
    """Raised when the host process cannot be launched or controlled."""

    pass


class ErrorHandler:
    """Handles and formats errors for user-friendly display."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def handle_error(self, error: Exception, context: Optional[str] = None) -> None:
        """
        Handle and display error with appropriate formatting.

        Args:
            error: Exception to handle
            context: Optional context about when/where error occurred
        """
        if isinstance(error, CmsDevError):
            self._handle_cmsdev_error(error, context)
        else:
            self._handle_generic_error(error, context)

    def _handle_cmsdev_error(self, error: CmsDevError, context: Optional[str]) -> None:
        """Handle cmsdev-specific errors."""
        click.echo(f"✗ {error.message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if error.details:
            click.echo(f"Details: {error.details}", err=True)

        if error.suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in error.suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def _handle_generic_error(self, error: Exception, context: Optional[str]) -> None:
        """Handle generic Python exceptions."""
        error_type = type(error).__name__

        if isinstance(error, FileNotFoundError):
            message = f"File not found: {error}"
            suggestions = create_error_suggestions("file_not_found")
        elif isinstance(error, PermissionError):
            message = f"Permission denied: {error}"
            suggestions = [
                "Check file/directory permissions",
                "Try running with appropriate privileges",
            ]
        else:
            message = f"{error_type}: {error}"
            suggestions = []

        click.echo(f"✗ {message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def exit_with_error(self, error: Exception, context: Optional[str] = None, exit_code: int = 1) -> None:
        """Handle error and exit with specified code."""
        self.handle_error(error, context)
        sys.exit(exit_code)


def create_error_suggestions(error_type: str, **kwargs) -> List[str]:
    """
    Create contextual error suggestions based on error type and context.

    Args:
        error_type: Type of error
        **kwargs: Additional context information (e.g. ``command``)

    Returns:
        list: List of suggestion strings
    """
    command = kwargs.get("command")

    suggestions = {
        "command_not_found": [
            f"Check that '{command}' is installed and on your PATH" if command else "Check that the toolchain is installed and on your PATH",
            "Override the command in cmsdev.yml if it lives elsewhere",
        ],
        "command_failed": [
            "Run again with --verbose to see the command output",
            "Check that the entry point exists and compiles",
        ],
        "file_not_found": [
            "Check that the file path is correct",
            "Ensure the file exists and is readable",
        ],
        "host_not_started": [
            "Check that the host binary exists in the installation directory",
            "Use --dev to build and run the host from source instead",
        ],
        "configuration_invalid": [
            "Check YAML syntax in cmsdev.yml",
            "Run 'cmsdev init --force' to regenerate a starter configuration",
        ],
    }

    return suggestions.get(error_type, [])


def format_validation_errors(errors: list) -> str:
    """
    Format validation errors for display.

    Args:
        errors: List of validation error messages

    Returns:
        str: Formatted error message
    """
    if not errors:
        return "No validation errors"

    if len(errors) == 1:
        return f"Validation error: {errors[0]}"

    formatted = "Validation errors:\n"
    for i, error in enumerate(errors, 1):
        formatted += f"  {i}. {error}\n"

    return formatted.strip()
