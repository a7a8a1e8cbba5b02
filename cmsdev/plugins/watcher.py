"""Republish-on-change for plugin development."""

import logging
import os
import threading
from typing import Callable, Dict, Iterable, Optional

import click
from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..utils.files import FileManager, file_signature, path_is_ignored
from .publisher import PluginPublisher, PublishRequest, PublishResult

logger = logging.getLogger(__name__)

TRIGGER_EVENTS = (FileCreatedEvent, FileModifiedEvent, FileDeletedEvent, FileMovedEvent)


class PluginSourceWatcher(FileSystemEventHandler):
    """Watches plugin sources and calls back for every real file change."""

    def __init__(
        self,
        source_dir: str,
        change_callback: Callable[[str, str], None],
        ignore_patterns: Optional[Iterable[str]] = None,
        exclude_dirs: Optional[Iterable[str]] = None,
    ):
        """
        Initialize plugin source watcher.

        Args:
            source_dir: Directory to watch
            change_callback: Called with (path, change_type) for accepted events
            ignore_patterns: Path components to ignore (".git", "*.swp", ...)
            exclude_dirs: Directories whose contents are never reported
        """
        self.source_dir = os.path.abspath(source_dir)
        self.change_callback = change_callback
        self.ignore_patterns = list(ignore_patterns or [])
        self.exclude_dirs = [os.path.abspath(d) for d in exclude_dirs or []]
        self.snapshot: Dict[str, str] = {}

    def on_any_event(self, event):
        """Handle any file system event."""
        if event.is_directory or not isinstance(event, TRIGGER_EVENTS):
            return

        if isinstance(event, FileMovedEvent):
            path, change_type = event.dest_path, "moved"
        elif isinstance(event, FileCreatedEvent):
            path, change_type = event.src_path, "created"
        elif isinstance(event, FileDeletedEvent):
            path, change_type = event.src_path, "deleted"
        else:
            path, change_type = event.src_path, "modified"

        if isinstance(path, bytes):
            path = os.fsdecode(path)
        path = os.path.abspath(path)

        if not self._should_watch_file(path):
            return

        if self._is_stale(path, change_type):
            logger.debug("Ignoring %s event for unchanged %s", change_type, path)
            return

        self.change_callback(path, change_type)

    def _should_watch_file(self, file_path: str) -> bool:
        for excluded in self.exclude_dirs:
            if file_path == excluded or file_path.startswith(excluded + os.sep):
                return False
        return not path_is_ignored(file_path, self.source_dir, self.ignore_patterns)

    def _is_stale(self, path: str, change_type: str) -> bool:
        """An event is stale when the file still has the content it had when the last publish began."""
        if change_type == "deleted":
            return path not in self.snapshot
        return path in self.snapshot and file_signature(path) == self.snapshot[path]


class PluginWatchManager:
    """Republishes a plugin every time its sources change."""

    def __init__(self, publisher: PluginPublisher, request: PublishRequest):
        self.publisher = publisher
        self.request = request
        self.file_manager = FileManager()
        self.ignore_patterns = publisher.config["watch"]["ignore"]

        plugin_path = publisher.derive_paths(request).plugin_path
        self.watcher = PluginSourceWatcher(
            request.source_dir,
            self._handle_change,
            ignore_patterns=self.ignore_patterns,
            exclude_dirs=[plugin_path],
        )
        self.observer = None
        self.publish_count = 0

    def publish(self) -> PublishResult:
        """Snapshot the sources, then run one full publish."""
        # Edits saved while the publish runs must not end up in the snapshot
        self.watcher.snapshot = self.file_manager.snapshot_tree(self.request.source_dir, self.ignore_patterns)
        result = self.publisher.publish(self.request)
        self.publish_count += 1

        if result.success:
            click.echo(f"✓ Published '{self.request.plugin_name}'")
        else:
            click.echo(f"✗ Publishing '{self.request.plugin_name}' failed at the {result.failed_step} step", err=True)

        return result

    def _handle_change(self, file_path: str, change_type: str) -> None:
        rel_path = os.path.relpath(file_path, self.watcher.source_dir)
        click.echo(f"File {change_type}: {rel_path}, republishing...")
        self.publish()

    def start(self) -> None:
        self.observer = Observer()
        self.observer.schedule(self.watcher, self.watcher.source_dir, recursive=True)
        self.observer.start()
        click.echo(f"Watching {self.watcher.source_dir} for changes")

    def stop(self) -> None:
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join(timeout=5)
        self.observer = None
        click.echo("Stopped watching.")

    def run(self, stop_event: threading.Event) -> None:
        """Watch until stop_event is set."""
        self.start()
        try:
            stop_event.wait()
        finally:
            self.stop()
