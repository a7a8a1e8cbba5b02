"""Plugin publish workflow for cmsdev.

Builds a plugin binary straight into an installation's plugin directory and
copies the manifest, docs and any extra files next to it:

    <dest>/<content_dir>/<plugins_dir>/<plugin name>/<binary name>

Publishing is not transactional. A failed step leaves whatever earlier steps
produced on disk; the next run overwrites it.
"""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import click

from ..config.schemas import DEFAULT_CONFIG
from ..utils.errors import (
    BuildError,
    CopyError,
    ErrorHandler,
    PluginError,
    create_error_suggestions,
)
from ..utils.files import FileManager

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755


@dataclass
class PublishRequest:
    """Everything needed to publish one plugin."""

    plugin_name: str
    source_dir: str
    dest_dir: str
    entry_point: str = "main.go"
    binary_name: Optional[str] = None
    extra_paths: List[str] = field(default_factory=list)
    hard: bool = False
    watch: bool = False
    verbose: bool = False

    def __post_init__(self):
        if not self.entry_point:
            self.entry_point = "main.go"
        if not self.binary_name:
            self.binary_name = self.plugin_name
        self.extra_paths = list(self.extra_paths or [])

    def validate(self) -> List[str]:
        """Return user-facing messages for every missing required value."""
        errors = []
        if not self.source_dir or not self.dest_dir:
            errors.append("A source and destination directory must be specified.")
        if not self.plugin_name:
            errors.append("A plugin name must be specified with the --name or -n flag.")
        return errors


@dataclass(frozen=True)
class DerivedPaths:
    """Destination paths computed from a request and the installation layout."""

    plugin_path: str
    binary_path: str


@dataclass(frozen=True)
class FileCopySpec:
    source_path: str
    dest_path: str


@dataclass
class PublishResult:
    """Outcome of one publish run."""

    success: bool
    failed_step: Optional[str] = None
    error: Optional[Exception] = None
    binary_path: Optional[str] = None
    copied: List[FileCopySpec] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _normalize(path: str) -> str:
    return os.path.normpath(path)


def derive_paths(request: PublishRequest, content_dir: str = "content", plugins_dir: str = "plugins") -> DerivedPaths:
    """Compute plugin and binary paths; trailing separators in inputs are ignored."""
    plugin_path = os.path.join(_normalize(request.dest_dir), content_dir, plugins_dir, request.plugin_name)
    return DerivedPaths(
        plugin_path=plugin_path,
        binary_path=os.path.join(plugin_path, request.binary_name),
    )


class PluginPublisher:
    """Generates, builds and copies a plugin into an installation."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize plugin publisher.

        Args:
            config: Effective cmsdev configuration (defaults if omitted)
        """
        self.config = config or DEFAULT_CONFIG
        self.file_manager = FileManager()
        self.error_handler = ErrorHandler(verbose=False)

    def derive_paths(self, request: PublishRequest) -> DerivedPaths:
        layout = self.config["layout"]
        return derive_paths(request, layout["content_dir"], layout["plugins_dir"])

    def entry_path(self, request: PublishRequest) -> str:
        return os.path.join(_normalize(request.source_dir), request.entry_point)

    def build_copy_list(self, request: PublishRequest) -> List[str]:
        """
        Assemble the ordered list of source paths to copy.

        Manifest and docs come first, then the extra paths in the order given.
        Relative extra paths are resolved against the source directory.
        """
        source_dir = _normalize(request.source_dir)
        files = self.config["files"]

        paths = [
            os.path.join(source_dir, files["manifest"]),
            os.path.join(source_dir, files["docs"]),
        ]
        for extra in request.extra_paths:
            if os.path.isabs(extra):
                paths.append(_normalize(extra))
            else:
                paths.append(os.path.join(source_dir, extra))

        return paths

    def copy_spec(self, request: PublishRequest, source_path: str, plugin_path: str) -> FileCopySpec:
        """Map a source path to the same relative location inside plugin_path."""
        rel_path = os.path.relpath(_normalize(source_path), _normalize(request.source_dir))
        if rel_path == os.curdir or rel_path == os.pardir or rel_path.startswith(os.pardir + os.sep):
            raise CopyError(
                f"Error copying {source_path}: path is outside the source directory",
                path=source_path,
            )
        return FileCopySpec(source_path=source_path, dest_path=os.path.join(plugin_path, rel_path))

    def publish(self, request: PublishRequest) -> PublishResult:
        """
        Run generate, build, chmod and copy for a request.

        Errors are reported where they happen and summarised in the returned
        result; nothing is raised for step failures.

        Args:
            request: Plugin to publish

        Returns:
            PublishResult: Outcome of the run
        """
        errors = request.validate()
        if errors:
            for message in errors:
                click.echo(message)
            return PublishResult(success=False, failed_step="validate")

        self.file_manager.verbose = request.verbose
        paths = self.derive_paths(request)
        entry = self.entry_path(request)
        result = PublishResult(success=False, binary_path=paths.binary_path)

        step = "generate"
        try:
            self._run_command("generate", self._format_command("generate", entry, paths.binary_path), request.verbose)

            step = "build"
            os.makedirs(paths.plugin_path, exist_ok=True)
            self._run_command("build", self._format_command("build", entry, paths.binary_path), request.verbose)

            step = "chmod"
            warning = self._make_executable(paths.binary_path)
            if warning:
                result.warnings.append(warning)

            step = "copy"
            for source_path in self.build_copy_list(request):
                spec = self.copy_spec(request, source_path, paths.plugin_path)
                self._copy(spec, request.hard)
                result.copied.append(spec)

        except PluginError as e:
            self.error_handler.handle_error(e)
            result.failed_step = step
            result.error = e
            return result

        except OSError as e:
            # Creating the plugin directory failed
            error = PluginError(f"Error preparing {paths.plugin_path}: {e}")
            self.error_handler.handle_error(error)
            result.failed_step = step
            result.error = error
            return result

        result.success = True
        logger.debug("Published %s to %s", request.plugin_name, paths.plugin_path)
        return result

    def _format_command(self, name: str, entry: str, binary: str) -> List[str]:
        template = self.config["commands"][name]
        return [part.replace("{entry}", entry).replace("{binary}", binary) for part in template]

    def _run_command(self, step: str, command: Sequence[str], verbose: bool = False) -> None:
        """Run an external command; stdout only when verbose, stderr always."""
        command_line = " ".join(shlex.quote(part) for part in command)
        logger.debug("Running %s step: %s", step, command_line)

        try:
            subprocess.run(
                list(command),
                stdout=None if verbose else subprocess.DEVNULL,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise BuildError(
                f"Error running '{command_line}': exit status {e.returncode}",
                command=command,
                suggestions=create_error_suggestions("command_failed"),
            ) from e
        except OSError as e:
            raise BuildError(
                f"Error running '{command_line}': {e}",
                command=command,
                suggestions=create_error_suggestions("command_not_found", command=command[0]),
            ) from e

    def _make_executable(self, binary_path: str) -> Optional[str]:
        """chmod the binary; failure is returned as a warning, never raised."""
        try:
            self.file_manager.set_file_permissions(binary_path, EXECUTABLE_MODE)
        except OSError as e:
            message = f"Error setting plugin to executable: {e}"
            click.echo(f"⚠ {message}", err=True)
            return message
        return None

    def _copy(self, spec: FileCopySpec, hard: bool) -> None:
        try:
            self.file_manager.copy(spec.source_path, spec.dest_path, hard=hard)
        except OSError as e:
            raise CopyError(
                f"Error copying {spec.source_path}: {e.strerror or e}",
                path=spec.source_path,
            ) from e
