"""Shared fixtures and helpers for the watchrun tests.

Real child processes are short `python -c` scripts so the tests exercise
actual process groups, kills and exits. Timing-sensitive tests use a small
Backoff and poll for the expected state with `wait_until`.
"""

from __future__ import annotations

import os
import stat
import sys
import threading
import time
from pathlib import Path
from typing import Callable, List

import pytest

from watchrun.supervisor import Backoff, ChangeSignal, ProcessSupervisor, ShutdownRequest
from watchrun.supervisor import process_utils

SLEEPER = [sys.executable, "-c", "import time; time.sleep(60)"]
QUICK_EXIT = [sys.executable, "-c", "import sys; sys.exit(3)"]

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="requires POSIX process groups")


def wait_until(predicate: Callable[[], bool], timeout: float = 10.0, interval: float = 0.01) -> bool:
    """Polls `predicate` until it is true or the timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def pid_alive(pid: int) -> bool:
    import psutil

    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False


@pytest.fixture()
def make_executable(tmp_path: Path):
    """Writes an executable shell script and returns its path."""

    def _make(name: str = "target", body: str = "exit 0\n") -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


def bump_mtime(path: Path, seconds: int = 10) -> None:
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + seconds * 1_000_000_000))


@pytest.fixture()
def launched(monkeypatch) -> List:
    """Records every process the supervisor launches."""
    procs: List = []
    real_launch = process_utils.launch_process

    def _launch(command):
        proc = real_launch(command)
        procs.append(proc)
        return proc

    monkeypatch.setattr(process_utils, "launch_process", _launch)
    yield procs
    for proc in procs:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


@pytest.fixture()
def run_supervisor():
    """Starts a ProcessSupervisor on a background thread; shuts it down on teardown."""
    started = []

    def _run(command, change_signal=None, backoff=None, run_on_start=True):
        supervisor = ProcessSupervisor(
            command,
            change_signal or ChangeSignal(),
            ShutdownRequest(),
            backoff=backoff or Backoff(0.05, 0.4),
            run_on_start=run_on_start,
        )
        thread = threading.Thread(target=supervisor.run, daemon=True)
        thread.start()
        started.append((supervisor, thread))
        return supervisor, thread

    yield _run
    for supervisor, thread in started:
        supervisor.shutdown.request("by test teardown")
        thread.join(timeout=10)
