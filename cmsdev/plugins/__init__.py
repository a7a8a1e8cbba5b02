"""Plugin publishing for cmsdev."""

from .publisher import (
    DerivedPaths,
    FileCopySpec,
    PluginPublisher,
    PublishRequest,
    PublishResult,
    derive_paths,
)
from .watcher import PluginSourceWatcher, PluginWatchManager

__all__ = [
    "DerivedPaths",
    "FileCopySpec",
    "PluginPublisher",
    "PublishRequest",
    "PublishResult",
    "derive_paths",
    "PluginSourceWatcher",
    "PluginWatchManager",
]
