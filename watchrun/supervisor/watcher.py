import os
import time
import logging
import threading
from typing import NamedTuple, Optional

from watchrun.config import effective_settings as config
from watchrun.supervisor.change_signal import ChangeSignal
from watchrun.supervisor.errors import BinaryLookupError
from watchrun.supervisor.process_utils import resolve_executable

log = logging.getLogger(__name__)


class BinaryIdentity(NamedTuple):
    """Where the executable lives and when it was last written."""
    path: str
    modified_at: int  # st_mtime_ns


def lookup_binary(name: str) -> BinaryIdentity:
    """
    Resolves the executable and reads its modification time.

    :param name: The executable name or path.
    :return: The current identity of the executable.
    :raises BinaryLookupError: If the executable cannot be found or stat'ed.
    """
    path = resolve_executable(name)
    try:
        return BinaryIdentity(path, os.stat(path).st_mtime_ns)
    except OSError as e:
        raise BinaryLookupError(f"Cannot stat '{path}': {e}") from e


class BinaryWatcher:
    """
    Polls the identity of an executable and announces every change.

    Lookup failures are treated as transient: the tick is skipped and the last
    known identity is kept, so a binary being rewritten by a build does not
    trigger a restart until it is back in place.
    """

    def __init__(self, name: str, change_signal: ChangeSignal, interval: Optional[float] = None) -> None:
        self.name = name
        self.change_signal = change_signal
        self.interval = config.POLL_INTERVAL if interval is None else interval
        self._thread: Optional[threading.Thread] = None
        self._last_identity: Optional[BinaryIdentity] = None
        try:
            self._last_identity = lookup_binary(name)
        except BinaryLookupError as e:
            log.debug(f"No initial identity for '{name}': {e}")

    @property
    def last_identity(self) -> Optional[BinaryIdentity]:
        return self._last_identity

    def poll_once(self) -> bool:
        """
        Runs a single watch tick.

        :return: True if a change was announced.
        """
        try:
            identity = lookup_binary(self.name)
        except BinaryLookupError as e:
            log.debug(f"Skipping watch tick: {e}")
            return False

        if self._last_identity is None:
            log.debug(f"Baseline identity for '{self.name}': {identity}")
            self._last_identity = identity
            return False

        if identity == self._last_identity:
            return False

        log.info(f"Binary changed: {identity.path}")
        self.change_signal.announce()
        self._last_identity = identity
        return True

    def _watch_loop(self) -> None:
        log.debug(f"Watching '{self.name}' every {self.interval}s.")
        while True:
            time.sleep(self.interval)
            try:
                self.poll_once()
            except Exception as e:
                log.error(f"Unexpected error while watching '{self.name}': {e}", exc_info=True)

    def start(self) -> None:
        """Starts the background polling thread. It runs for the lifetime of the process."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._watch_loop, daemon=True, name="BinaryWatcherThread")
        self._thread.start()
