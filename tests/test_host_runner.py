"""Tests for the host process runner."""

import os
import sys
import threading
import time

import pytest

from cmsdev.config.schemas import DEFAULT_CONFIG
from cmsdev.host.runner import HostProcess, HostState
from cmsdev.utils.errors import HostProcessError

# Prints one line on each stream, then keeps printing until killed
CHATTY_HOST = (
    "import sys, time\n"
    "print('listening on :8080', flush=True)\n"
    "print('warming cache', file=sys.stderr, flush=True)\n"
    "while True:\n"
    "    print('tick', flush=True)\n"
    "    time.sleep(0.05)\n"
)


class Sink:
    """Thread-safe collector for forwarded output."""

    def __init__(self):
        self.lines = []
        self._lock = threading.Lock()

    def __call__(self, line):
        with self._lock:
            self.lines.append(line)

    def snapshot(self):
        with self._lock:
            return list(self.lines)

    def wait_for(self, text, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if text in self.snapshot():
                return True
            time.sleep(0.02)
        return False

    def first_match(self, predicate, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            for line in self.snapshot():
                if predicate(line):
                    return line
            time.sleep(0.02)
        return None


def wait_until(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.02)
    return False


def process_alive(pid):
    """Linux only: a pid that is gone or a zombie counts as dead."""
    try:
        with open(f"/proc/{pid}/stat") as f:
            state = f.read().rsplit(")", 1)[1].split()[0]
    except FileNotFoundError:
        return False
    return state not in ("Z", "X")


class TestCommandResolution:
    """Test launch command selection."""

    def test_precompiled_mode_uses_host_binary(self):
        host = HostProcess("/inst")

        assert host.command == [DEFAULT_CONFIG["host"]["binary"]]
        assert host.state is HostState.NOT_STARTED

    def test_dev_mode_uses_run_command(self):
        host = HostProcess("/inst", dev_mode=True)

        assert host.command == ["go", "run", "main.go"]

    def test_configured_binary(self):
        config = dict(DEFAULT_CONFIG, host={"binary": "./server"})

        assert HostProcess("/inst", config=config).command == ["./server"]


class TestHostLifecycle:
    """Test running a real child process."""

    def test_forwards_both_streams_and_stops(self, temp_directory):
        sink = Sink()
        host = HostProcess(temp_directory, command=[sys.executable, "-c", CHATTY_HOST], output=sink)
        stop_event = threading.Event()

        runner = threading.Thread(target=host.run, args=(stop_event,))
        runner.start()

        assert sink.wait_for("listening on :8080")
        assert sink.wait_for("warming cache")
        assert host.state is HostState.RUNNING

        stop_event.set()
        runner.join(timeout=10)

        assert not runner.is_alive()
        assert host.state is HostState.STOPPED
        assert host.process.poll() is not None
        assert sink.snapshot()[0] == "Host started"

    def test_no_output_after_stopped_notice(self, temp_directory):
        sink = Sink()
        host = HostProcess(temp_directory, command=[sys.executable, "-c", CHATTY_HOST], output=sink)
        stop_event = threading.Event()
        timer = threading.Timer(2.0, stop_event.set)

        timer.start()
        host.run(stop_event)
        time.sleep(0.3)

        lines = sink.snapshot()
        assert lines[-1] == "Host stopped."
        assert lines.count("Host stopped.") == 1
        assert host.process.returncode is not None

    def test_working_directory_is_used(self, temp_directory):
        sink = Sink()
        script = "import os; print(os.getcwd(), flush=True); import time; time.sleep(30)"
        host = HostProcess(temp_directory, command=[sys.executable, "-c", script], output=sink)

        host.start()
        try:
            assert sink.wait_for(os.path.realpath(temp_directory))
        finally:
            host.stop()

    def test_spawn_failure_raises(self, temp_directory):
        host = HostProcess(temp_directory, command=["./does-not-exist-host"])

        with pytest.raises(HostProcessError) as exc_info:
            host.start()

        assert "Error starting host" in exc_info.value.message
        assert host.state is HostState.NOT_STARTED

    def test_handle_is_not_reusable(self, temp_directory):
        host = HostProcess(temp_directory, command=[sys.executable, "-c", "import time; time.sleep(30)"], output=Sink())

        host.start()
        host.stop()

        with pytest.raises(HostProcessError):
            host.start()

    def test_stop_before_start_is_noop(self, temp_directory):
        host = HostProcess(temp_directory, command=[sys.executable, "-c", "pass"], output=Sink())

        host.stop()

        assert host.state is HostState.NOT_STARTED

    def test_stop_after_child_exited(self, temp_directory):
        sink = Sink()
        host = HostProcess(temp_directory, command=[sys.executable, "-c", "print('bye', flush=True)"], output=sink)

        host.start()
        host.process.wait(timeout=10)
        host.stop()

        assert host.state is HostState.STOPPED
        assert host.returncode == 0

    def test_stop_kills_host_while_output_is_stalled(self, temp_directory):
        stalled = threading.Event()
        release = threading.Event()

        def stalling_output(line):
            if line == "tick":
                stalled.set()
                release.wait(10)

        host = HostProcess(temp_directory, command=[sys.executable, "-c", CHATTY_HOST], output=stalling_output)
        host.start()
        assert stalled.wait(5)

        stopper = threading.Thread(target=host.stop)
        stopper.start()
        try:
            assert wait_until(lambda: host.process.poll() is not None)
        finally:
            release.set()
            stopper.join(timeout=10)

        assert not stopper.is_alive()
        assert host.state is HostState.STOPPED

    @pytest.mark.skipif(not sys.platform.startswith("linux"), reason="inspects /proc")
    def test_stop_kills_processes_started_by_host(self, temp_directory):
        script = (
            "import subprocess, sys, time\n"
            "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
            "print(child.pid, flush=True)\n"
            "time.sleep(60)\n"
        )
        sink = Sink()
        host = HostProcess(temp_directory, command=[sys.executable, "-c", script], output=sink)

        host.start()
        try:
            line = sink.first_match(str.isdigit)
        finally:
            host.stop()

        assert line is not None
        assert wait_until(lambda: not process_alive(int(line)))
