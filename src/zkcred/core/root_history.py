"""Per-group record of every root the accumulator has had."""

from typing import Dict, Optional


class RootHistory:
    """
    Maps each root value to the time it first became current.

    Entries are never removed; whether an old root is still usable is decided
    at verification time from its creation time and the group's validity
    duration.
    """

    def __init__(self):
        self._creation_times: Dict[int, float] = {}

    def record(self, root: int, timestamp: float) -> bool:
        """
        Stamp a root with its creation time.

        Returns:
            bool: False if the root was already recorded (first stamp wins)
        """
        if root in self._creation_times:
            return False
        self._creation_times[root] = timestamp
        return True

    def creation_time(self, root: int) -> Optional[float]:
        """Get the creation time of a root, or None if it was never current."""
        return self._creation_times.get(root)

    def is_expired(self, root: int, now: float, duration: float) -> bool:
        """
        Check whether a recorded root is past its validity window.

        Raises:
            KeyError: If the root was never recorded
        """
        return now > self._creation_times[root] + duration

    def to_dict(self) -> dict:
        return {str(root): created for root, created in self._creation_times.items()}

    def __contains__(self, root: int) -> bool:
        return root in self._creation_times

    def __len__(self) -> int:
        return len(self._creation_times)
