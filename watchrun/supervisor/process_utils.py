import os
import sys
import shutil
import signal
import psutil
import logging
import subprocess
from typing import Any, Dict, List, Sequence

from watchrun.supervisor.errors import BinaryLookupError, LaunchError

log = logging.getLogger(__name__)


#* --- Executable Resolution ---
def resolve_executable(name: str) -> str:
    """
    Resolves an executable name to an absolute path using the PATH search.
    Names containing a directory component are checked as given.

    :param name: The executable name or path.
    :return: The absolute path of the executable.
    :raises BinaryLookupError: If nothing executable is found.
    """
    path = shutil.which(name)
    if path is None:
        raise BinaryLookupError(f"Executable '{name}' not found.")
    return os.path.abspath(path)


#* --- Process Creation ---
def _get_popen_creation_flags() -> Dict[str, Any]:
    """Returns platform-specific arguments that put the child in its own process group."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def launch_process(command: Sequence[str]) -> subprocess.Popen:
    """
    Launches the target with inherited stdin/stdout/stderr in a new process group.

    The executable is resolved again on every launch so a binary that moved
    along the PATH is picked up. argv[0] is passed through unchanged.

    :param command: The executable name followed by its arguments.
    :return: The running child process.
    :raises BinaryLookupError: If the executable cannot be resolved.
    :raises LaunchError: If the OS refuses to start the process.
    """
    args: List[str] = list(command)
    path = resolve_executable(args[0])
    try:
        process = subprocess.Popen(args, executable=path, **_get_popen_creation_flags())
    except (OSError, subprocess.SubprocessError) as e:
        raise LaunchError(f"Failed to start '{path}': {e}") from e
    log.debug(f"Launched {path} with PID {process.pid}")
    return process


#* --- Process Termination ---
def _kill_tree(pid: int) -> bool:
    """Forcefully kills a process and all its descendants. Used where process groups are unavailable."""
    try:
        parent = psutil.Process(pid)
        procs = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        log.warning(f"Process {pid} no longer exists, skipping kill.")
        return False

    killed = False
    for proc in procs:
        try:
            proc.kill()
            killed = True
        except psutil.NoSuchProcess:
            continue
        except psutil.Error as e:
            log.warning(f"Failed to kill process {proc.pid}: {e}")
    return killed


def terminate_group(process: subprocess.Popen) -> bool:
    """
    Forcefully terminates the process and everything in its process group.

    This is best-effort: failures are logged, never raised.

    :param process: The child started by `launch_process`.
    :return: True if a kill signal was delivered.
    """
    if process.poll() is not None:
        log.debug(f"Process {process.pid} already exited, nothing to kill.")
        return False

    if sys.platform == "win32":
        return _kill_tree(process.pid)

    try:
        pgid = os.getpgid(process.pid)
    except ProcessLookupError:
        log.warning(f"Process {process.pid} no longer exists, skipping group kill.")
        return False

    if pgid == os.getpgrp():
        # Sharing our own group; signalling it would take us down too.
        log.warning(f"Process {process.pid} is not a group leader. Killing its process tree instead.")
        return _kill_tree(process.pid)

    try:
        os.killpg(pgid, signal.SIGKILL)
        return True
    except (ProcessLookupError, PermissionError) as e:
        log.warning(f"Failed to kill process group {pgid}: {e}")
        return False
