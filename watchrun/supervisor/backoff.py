from typing import Optional

from watchrun.config import effective_settings as config


class Backoff:
    """
    A bounded, multiplicative restart delay.

    `current` always stays within [minimum, maximum].
    """

    def __init__(self, minimum: Optional[float] = None, maximum: Optional[float] = None,
                 multiplier: Optional[float] = None) -> None:
        self.minimum = float(config.BACKOFF_MIN if minimum is None else minimum)
        self.maximum = float(config.BACKOFF_MAX if maximum is None else maximum)
        self.multiplier = float(config.BACKOFF_MULTIPLIER if multiplier is None else multiplier)
        if self.minimum <= 0 or self.minimum > self.maximum:
            raise ValueError(f"Invalid backoff bounds: minimum={self.minimum}, maximum={self.maximum}")
        if self.multiplier < 1:
            raise ValueError(f"Backoff multiplier must be at least 1, got {self.multiplier}")
        self.current = self.minimum

    def reset(self) -> None:
        self.current = self.minimum

    def increase(self) -> float:
        """Grows the delay by the multiplier, capped at the maximum. Returns the new delay."""
        self.current = min(self.current * self.multiplier, self.maximum)
        return self.current

    def __repr__(self) -> str:
        return f"Backoff(current={self.current}, minimum={self.minimum}, maximum={self.maximum})"
