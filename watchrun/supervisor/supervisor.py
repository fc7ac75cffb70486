import logging
import threading
import subprocess
from enum import Enum
from concurrent.futures import FIRST_COMPLETED, Future, wait
from typing import List, Optional, Sequence

from watchrun.config import effective_settings as config
from watchrun.supervisor import process_utils
from watchrun.supervisor.backoff import Backoff
from watchrun.supervisor.change_signal import ChangeSignal
from watchrun.supervisor.errors import WatchrunError
from watchrun.supervisor.shutdown import ShutdownRequest

log = logging.getLogger(__name__)


class SupervisorState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    SHUT_DOWN = "shut-down"


class RunOutcome(Enum):
    """Why a supervised run ended."""
    NATURAL_EXIT = "natural-exit"
    SUPERSEDED = "superseded"
    SHUTDOWN = "shutdown"


class ProcessSupervisor:
    """
    Keeps one instance of the target running in sync with its binary.

    The supervision loop starts the target when a change is announced and,
    while it runs, races its exit against the next change and a shutdown
    request. A change kills the process group and restarts at once. A
    shutdown kills it and ends the loop. A natural exit waits out the backoff
    window: a change inside the window restarts promptly, otherwise the delay
    grows and the supervisor idles until the next change.
    """

    def __init__(
        self,
        command: Sequence[str],
        change_signal: ChangeSignal,
        shutdown: ShutdownRequest,
        backoff: Optional[Backoff] = None,
        run_on_start: Optional[bool] = None,
    ) -> None:
        """
        :param command: The executable name followed by its arguments.
        :param change_signal: Announces changes of the executable.
        :param shutdown: Ends supervision when requested.
        :param backoff: Delay policy after natural exits. Defaults to configured bounds.
        :param run_on_start: Start the target without waiting for a first change.
        """
        if not command:
            raise ValueError("A command to supervise is required.")
        self.command: List[str] = list(command)
        self.change_signal = change_signal
        self.shutdown = shutdown
        self.backoff = backoff if backoff is not None else Backoff()
        self.run_on_start = config.RUN_ON_START if run_on_start is None else run_on_start

        self.state = SupervisorState.IDLE
        self.process: Optional[subprocess.Popen] = None
        self.run_count = 0
        self.last_outcome: Optional[RunOutcome] = None

    @property
    def name(self) -> str:
        return self.command[0]

    def _await(self, token: Future, timeout: Optional[float] = None) -> None:
        """Blocks until the token fires, shutdown is requested, or the timeout elapses."""
        wait([token, self.shutdown.future], timeout=timeout, return_when=FIRST_COMPLETED)

    def _shut_down(self) -> RunOutcome:
        self.state = SupervisorState.SHUT_DOWN
        log.info("Supervisor stopped.")
        return RunOutcome.SHUTDOWN

    #* --- Running State ---
    def _race(self, process: subprocess.Popen, changed: Future, reaped: Future, result: Future) -> None:
        """
        Waits for the first of: process reaped, binary changed, shutdown.
        Kills the process group if a change or shutdown wins.
        """
        outcome = RunOutcome.NATURAL_EXIT
        try:
            wait([reaped, changed, self.shutdown.future], return_when=FIRST_COMPLETED)
            if self.shutdown.is_set():
                outcome = RunOutcome.SHUTDOWN
                log.info(f"Killing {self.name} (PID {process.pid}) for shutdown.")
                process_utils.terminate_group(process)
            elif changed.done():
                outcome = RunOutcome.SUPERSEDED
                log.info("Binary changed; killing running process.")
                process_utils.terminate_group(process)
        except Exception as e:
            log.error(f"Process race for PID {process.pid} failed: {e}", exc_info=True)
        finally:
            result.set_result(outcome)

    def _supervise(self, process: subprocess.Popen, changed: Future) -> RunOutcome:
        """Blocks until the process is reaped and returns why it ended."""
        reaped: Future = Future()
        result: Future = Future()
        race_thread = threading.Thread(
            target=self._race,
            args=(process, changed, reaped, result),
            daemon=True,
            name="ProcessRaceThread",
        )
        race_thread.start()
        try:
            returncode = process.wait()
        finally:
            reaped.set_result(None)
            race_thread.join()

        outcome = result.result()
        if outcome is RunOutcome.NATURAL_EXIT:
            log.info(f"{self.name} exited with code {returncode}.")
        else:
            log.debug(f"{self.name} (PID {process.pid}) reaped after {outcome.value} with code {returncode}.")
        return outcome

    #* --- Supervision Loop ---
    def run(self) -> RunOutcome:
        """
        Runs the supervision loop until shutdown is requested.

        :return: RunOutcome.SHUTDOWN once the loop has ended.
        """
        pending_start = self.run_on_start
        log.info(f"Supervising {' '.join(self.command)}")

        while True:
            self.state = SupervisorState.IDLE
            changed = self.change_signal.wait()
            if not pending_start:
                log.debug("Waiting for the binary to change.")
                self._await(changed)
                if self.shutdown.is_set():
                    return self._shut_down()
                # Fresh token for the run: a change from here on supersedes it.
                changed = self.change_signal.wait()
            pending_start = False

            self.state = SupervisorState.STARTING
            log.info(f"Starting {self.name}")
            try:
                self.process = process_utils.launch_process(self.command)
            except WatchrunError as e:
                log.error(f"Failed to start binary: {e}")
                self.state = SupervisorState.IDLE
                self._await(changed)
                if self.shutdown.is_set():
                    return self._shut_down()
                log.info("Binary changed; continuing.")
                pending_start = True
                continue

            self.state = SupervisorState.RUNNING
            self.run_count += 1
            outcome = self._supervise(self.process, changed)
            self.process = None
            self.last_outcome = outcome
            self.state = SupervisorState.STOPPING

            if outcome is RunOutcome.SHUTDOWN:
                return self._shut_down()

            if outcome is RunOutcome.SUPERSEDED:
                self.backoff.reset()
                pending_start = True
                continue

            self._await(changed, timeout=self.backoff.current)
            if self.shutdown.is_set():
                return self._shut_down()
            if changed.done():
                log.info("Binary changed; restarting.")
                self.backoff.reset()
                pending_start = True
            else:
                delay = self.backoff.increase()
                log.info(f"Waiting for the next change before restarting (backoff now {delay:g}s).")
