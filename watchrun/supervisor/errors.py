class WatchrunError(Exception):
    """Base class for errors raised by watchrun."""


class BinaryLookupError(WatchrunError):
    """The target executable could not be resolved or stat'ed."""


class LaunchError(WatchrunError):
    """The target executable could not be started."""
