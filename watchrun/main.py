import sys
import logging
import setproctitle
from typing import List, Optional

from watchrun.config import effective_settings as config
from watchrun.log.setup import setup_logging
from watchrun.supervisor import (
    BinaryLookupError, BinaryWatcher, ChangeSignal, ProcessSupervisor,
    ShutdownRequest, install_signal_handlers, lookup_binary,
)

log = logging.getLogger("watchrun")

USAGE = "usage: watchrun <binary> [args...]"


def main(argv: Optional[List[str]] = None) -> int:
    """
    The entry point for the command-line tool.

    :param argv: Arguments after the program name. Defaults to sys.argv[1:].
    :return: The process exit status.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print(USAGE, file=sys.stderr)
        return 1

    binary = args[0]
    setup_logging(config.LOG_LEVEL, target=binary)
    if config.loaded_overrides is not None:
        log.info(f"Loaded configuration overrides from {config.loaded_overrides}")

    try:
        identity = lookup_binary(binary)
    except BinaryLookupError as e:
        log.critical(f"Cannot resolve '{binary}': {e}")
        return 1
    log.debug(f"Resolved '{binary}' to {identity.path}")

    setproctitle.setproctitle(f"{config.PROC_TITLE_PREFIX}: {binary}")

    shutdown = ShutdownRequest()
    change_signal = ChangeSignal()
    supervisor = ProcessSupervisor(args, change_signal, shutdown)

    install_signal_handlers(shutdown)
    BinaryWatcher(binary, change_signal).start()
    supervisor.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
