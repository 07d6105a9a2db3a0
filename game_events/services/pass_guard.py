"""
Pass Guard

Owns the single in-flight flag for scheduled sync passes. A firing that finds
a pass already running is skipped, never queued.
"""
import logging


logger = logging.getLogger(__name__)


class PassGuard:
    """
    Mutual exclusion for scheduled passes.

    All access happens on the event loop thread, so a plain flag checked and
    set without an intervening await is sufficient.
    """

    def __init__(self):
        self._in_flight = False

    def try_acquire(self) -> bool:
        """
        Mark a pass as in flight.

        Returns:
            False if a pass was already in flight, True otherwise
        """
        if self._in_flight:
            logger.warning("Previous scheduled sync still in progress, skipping this firing")
            return False
        self._in_flight = True
        return True

    def release(self) -> None:
        self._in_flight = False

    def is_in_flight(self) -> bool:
        return self._in_flight
