from __future__ import annotations

from typing import Optional


class InvalidFloorError(ValueError):
    """A floor number that does not exist in the building."""

    def __init__(self, value: object, floor_count: int, nearest: Optional[int] = None) -> None:
        super().__init__(f"Invalid floor {value!r}: building has floors 0..{floor_count - 1}")
        self.value = value
        self.floor_count = floor_count
        self.nearest = nearest


class QueueDesyncWarning(UserWarning):
    """destination_queue changed without a following check_destination_queue()."""


class ControlProgramError(RuntimeError):
    """A control program hook raised while the simulation runs in strict mode."""

    def __init__(self, hook: str) -> None:
        super().__init__(f"Control program failed in {hook}()")
        self.hook = hook
