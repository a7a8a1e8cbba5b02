"""File operations utilities for cmsdev."""

import hashlib
import logging
import os
import shutil
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


class FileManager:
    """Manages file operations for cmsdev."""

    def __init__(self, verbose: bool = False):
        """Initialize file manager."""
        self.verbose = verbose

    def copy(self, source: str, destination: str, hard: bool = False) -> str:
        """
        Copy a file or directory tree to destination.

        Directories are copied recursively and merged into an existing
        destination unless ``hard`` is set, in which case the existing
        destination is removed first.

        Args:
            source: File or directory to copy
            destination: Target path (created as needed)
            hard: Replace existing destination content entirely

        Returns:
            str: Destination path

        Raises:
            FileNotFoundError: If source does not exist
            OSError: If the copy fails
        """
        if not os.path.lexists(source):
            raise FileNotFoundError(f"No such file or directory: {source}")

        if hard and os.path.lexists(destination):
            self.remove(destination)

        parent = os.path.dirname(destination)
        if parent:
            os.makedirs(parent, exist_ok=True)

        if os.path.isdir(source):
            shutil.copytree(source, destination, dirs_exist_ok=True)
        else:
            shutil.copy2(source, destination)

        if self.verbose:
            print(f"Copied {source} -> {destination}")

        return destination

    def remove(self, path: str) -> None:
        """Remove a file, symlink or directory tree."""
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)

        logger.debug("Removed %s", path)

    def set_file_permissions(self, file_path: str, mode: int) -> None:
        """
        Set file permissions.

        Args:
            file_path: Path to file
            mode: Permission mode (e.g., 0o755)
        """
        os.chmod(file_path, mode)

        if self.verbose:
            print(f"Set permissions {oct(mode)} for {file_path}")

    def snapshot_tree(self, root: str, ignore: Optional[Iterable[str]] = None) -> Dict[str, str]:
        """
        Record a content hash for every file below root.

        Args:
            root: Directory to walk
            ignore: Path fragments; matching directories and files are skipped

        Returns:
            Dict[str, str]: Absolute path -> SHA-256 hex digest
        """
        ignore = list(ignore or [])
        snapshot = {}

        for current, dirs, files in os.walk(root):
            dirs[:] = [d for d in dirs if not _matches(d, ignore)]
            for name in files:
                if _matches(name, ignore):
                    continue
                path = os.path.abspath(os.path.join(current, name))
                signature = file_signature(path)
                if signature is not None:
                    snapshot[path] = signature

        return snapshot


def file_signature(path: str) -> Optional[str]:
    """Return the SHA-256 of path's contents, or None if it cannot be read."""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                digest.update(chunk)
    except OSError:
        return None
    return digest.hexdigest()


def _matches(name: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        if pattern.startswith("*"):
            if name.endswith(pattern[1:]):
                return True
        elif name == pattern:
            return True
    return False


def path_is_ignored(path: str, root: str, patterns: Iterable[str]) -> bool:
    """Check whether any component of path (relative to root) matches patterns."""
    rel_path = os.path.relpath(path, root)
    return any(_matches(part, patterns) for part in rel_path.split(os.sep))
