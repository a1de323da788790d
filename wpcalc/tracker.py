"""Step log for wp derivations.

A StepTracker is created by the caller for one calculation session and
threaded through the recursive calculate_wp calls. It is append-only while
a calculation runs and is not safe for concurrent writers; use one tracker
per in-flight calculation.
"""

from __future__ import annotations

from typing import List, Tuple

from wpcalc.errors import TrackerError, tracker_error


class StepTracker:
    """Ordered log of transformation descriptions, rendered 1-indexed."""

    def __init__(self) -> None:
        self._steps: List[str] = []

    def record_step(self, description: str) -> None:
        if description is None or not description.strip():
            raise TrackerError(tracker_error("Step description must not be empty"))
        self._steps.append(f"{len(self._steps) + 1}. {description}")

    def get_steps(self) -> Tuple[str, ...]:
        return tuple(self._steps)

    def clear(self) -> None:
        self._steps.clear()

    def has_steps(self) -> bool:
        return bool(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self):
        return iter(tuple(self._steps))
