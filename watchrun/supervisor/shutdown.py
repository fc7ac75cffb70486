import queue
import signal
import logging
import threading
from concurrent.futures import Future
from typing import Iterable, Optional

log = logging.getLogger(__name__)


class ShutdownRequest:
    """
    A one-shot shutdown notification.

    `future` completes on the first `request()`; later requests are ignored.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.future: Future = Future()

    def request(self, reason: str = "requested") -> None:
        with self._lock:
            if self.future.done():
                return
            self.future.set_result(reason)
        log.info(f"Shutdown {reason}.")

    def is_set(self) -> bool:
        return self.future.done()


def _default_signals() -> Iterable[signal.Signals]:
    signals = [signal.SIGINT]
    if hasattr(signal, "SIGTERM"):
        signals.append(signal.SIGTERM)
    return signals


def install_signal_handlers(shutdown: ShutdownRequest, signals: Optional[Iterable[signal.Signals]] = None) -> None:
    """
    Routes interrupt signals to the shutdown request instead of raising KeyboardInterrupt.
    Must be called from the main thread.

    :param shutdown: The request to complete when a signal arrives.
    :param signals: Signals to handle. Defaults to SIGINT and SIGTERM.
    """
    # Handlers run on the main thread between bytecodes, possibly while it holds
    # a future's or the threading module's locks. The handler only does a
    # reentrant SimpleQueue.put; a pre-started thread completes the request.
    reasons: queue.SimpleQueue = queue.SimpleQueue()

    def _dispatch() -> None:
        while True:
            shutdown.request(reasons.get())

    threading.Thread(target=_dispatch, daemon=True, name="ShutdownSignalThread").start()

    def _handler(signum, frame):
        reasons.put_nowait(f"requested by {signal.Signals(signum).name}")

    for sig in signals if signals is not None else _default_signals():
        signal.signal(sig, _handler)
