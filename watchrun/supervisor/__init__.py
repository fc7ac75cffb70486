"""
The Supervisor package.
Keeps a single external executable running in sync with its binary.

This package contains the change broadcast primitive, the binary watcher,
and the ProcessSupervisor state machine that restarts the target on change.
"""
from .backoff import Backoff
from .change_signal import ChangeSignal
from .errors import BinaryLookupError, LaunchError, WatchrunError
from .shutdown import ShutdownRequest, install_signal_handlers
from .supervisor import ProcessSupervisor, RunOutcome, SupervisorState
from .watcher import BinaryIdentity, BinaryWatcher, lookup_binary

__all__ = [
    'Backoff', 'ChangeSignal', 'ShutdownRequest', 'install_signal_handlers',
    'ProcessSupervisor', 'RunOutcome', 'SupervisorState',
    'BinaryIdentity', 'BinaryWatcher', 'lookup_binary',
    'WatchrunError', 'BinaryLookupError', 'LaunchError',
]
