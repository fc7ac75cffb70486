"""
A broadcast wake primitive for "the executable changed".

Every call to `ChangeSignal.wait()` hands out the current generation gate, a
one-shot `concurrent.futures.Future`. `announce()` completes that gate and puts
a fresh one in its place under the same lock, so each holder is woken exactly
once and a waiter that arrives after the announcement only sees the next one.

Gates carry no payload. Several announcements between two `wait()` calls
collapse into a single observable change.
"""
import logging
import threading
from concurrent.futures import Future

log = logging.getLogger(__name__)


class ChangeSignal:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._gate: Future = Future()
        self._generation = 0

    @property
    def generation(self) -> int:
        """The number of announcements made so far."""
        with self._lock:
            return self._generation

    def wait(self) -> Future:
        """
        Returns a token for the next change from this moment.

        This never blocks. Block on the token instead, e.g. `token.result()` or
        `concurrent.futures.wait([token, ...])`. The token is owned by the
        signal; callers must not complete or cancel it.
        """
        with self._lock:
            return self._gate

    def announce(self) -> None:
        """Releases every outstanding token and starts a new generation."""
        with self._lock:
            gate, self._gate = self._gate, Future()
            self._generation += 1
            generation = self._generation
        # The retired gate is no longer reachable through wait(), so it is
        # completed outside the lock. Done-callbacks may call wait() again.
        gate.set_result(None)
        log.debug(f"Change announced (generation {generation}).")
