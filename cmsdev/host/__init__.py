"""Host platform process management for cmsdev."""

from .runner import HostProcess, HostState

__all__ = ["HostProcess", "HostState"]
