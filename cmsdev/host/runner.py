"""Launch the host platform for local plugin testing."""

import logging
import os
import signal
import subprocess
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import click

from ..config.schemas import DEFAULT_CONFIG
from ..utils.errors import HostProcessError, create_error_suggestions

logger = logging.getLogger(__name__)


class HostState(Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    STOPPED = "stopped"


class HostProcess:
    """One launched host process.

    The handle goes NOT_STARTED -> RUNNING -> STOPPED and is not reusable;
    run the host again with a new handle.
    """

    def __init__(
        self,
        working_dir: str,
        dev_mode: bool = False,
        config: Optional[Dict[str, Any]] = None,
        command: Optional[Sequence[str]] = None,
        output: Callable[[str], None] = click.echo,
    ):
        """
        Initialize host process handle.

        Args:
            working_dir: Installation directory the host runs in
            dev_mode: Build and run from source instead of the precompiled binary
            config: Effective cmsdev configuration (defaults if omitted)
            command: Explicit launch command, overrides the configured one
            output: Sink for forwarded lines and lifecycle notices
        """
        self.working_dir = working_dir
        self.dev_mode = dev_mode
        self.config = config or DEFAULT_CONFIG
        self.command = list(command) if command else self._resolve_command()
        self.output = output
        self.state = HostState.NOT_STARTED
        self.process: Optional[subprocess.Popen] = None
        self._forwarding = threading.Event()
        self._output_lock = threading.Lock()

    def _resolve_command(self) -> List[str]:
        if self.dev_mode:
            return list(self.config["commands"]["run"])
        return [self.config["host"]["binary"]]

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode if self.process else None

    def start(self) -> None:
        """
        Spawn the host and start forwarding its output.

        Raises:
            HostProcessError: If the handle was already used or spawning fails
        """
        if self.state is not HostState.NOT_STARTED:
            raise HostProcessError(f"Host process cannot be started from state '{self.state.value}'")

        logger.debug("Starting host in %s: %s", self.working_dir, self.command)

        try:
            self.process = subprocess.Popen(
                self.command,
                cwd=self.working_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
                errors="replace",
                start_new_session=os.name == "posix",
            )
        except OSError as e:
            raise HostProcessError(
                f"Error starting host: {e}",
                details=f"Command: {' '.join(self.command)} (in {os.path.abspath(self.working_dir)})",
                suggestions=create_error_suggestions("host_not_started"),
            ) from e

        self.state = HostState.RUNNING
        self.output("Host started")

        self._forwarding.set()
        for stream, name in ((self.process.stdout, "stdout"), (self.process.stderr, "stderr")):
            reader = threading.Thread(
                target=self._forward_lines,
                args=(stream,),
                name=f"host-{name}",
                daemon=True,
            )
            reader.start()

    def _forward_lines(self, stream) -> None:
        # Ends when the pipe closes after the process exits
        for line in stream:
            with self._output_lock:
                if not self._forwarding.is_set():
                    break
                self.output(line.rstrip("\r\n"))

    def stop(self) -> None:
        """Kill the host. No graceful shutdown is attempted."""
        if self.state is not HostState.RUNNING:
            return

        # Kill first; a reader may be blocked writing while it holds the lock
        self._kill()
        with self._output_lock:
            self._forwarding.clear()
        self.process.wait()

        self.state = HostState.STOPPED
        self.output("Host stopped.")

    def _kill(self) -> None:
        if os.name != "posix":
            self.process.kill()
            return

        # The host leads its own process group, which includes anything
        # `go run` started
        try:
            os.killpg(self.process.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError) as e:
            logger.debug("Could not signal host process group: %s", e)
            self.process.kill()

    def run(self, stop_event: threading.Event) -> None:
        """Start the host, block until stop_event is set, then kill it."""
        self.start()
        try:
            stop_event.wait()
        finally:
            self.stop()
