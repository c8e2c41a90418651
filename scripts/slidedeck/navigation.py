"""Navigation state machine over the active sequence."""

from __future__ import annotations

from .models import NavigationState


class NavigationController:
    """Track the current slide and the direction of the last move.

    ``direction`` only describes the transition (-1 back, +1 forward, 0 none);
    bounds are checked against ``total`` alone. Moves past either end are
    ignored rather than reported.
    """

    def __init__(self, total: int = 0):
        self._total = max(0, int(total))
        self._current_index = 0
        self._direction = 0

    @property
    def total(self) -> int:
        return self._total

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def direction(self) -> int:
        return self._direction

    @property
    def state(self) -> NavigationState:
        return NavigationState(current_index=self._current_index, direction=self._direction)

    @property
    def can_next(self) -> bool:
        return self._current_index < self._total - 1

    @property
    def can_prev(self) -> bool:
        return self._current_index > 0

    def next(self) -> bool:
        if not self.can_next:
            return False
        self._direction = 1
        self._current_index += 1
        return True

    def prev(self) -> bool:
        if not self.can_prev:
            return False
        self._direction = -1
        self._current_index -= 1
        return True

    def jump(self, target: int) -> bool:
        if isinstance(target, bool) or not isinstance(target, int):
            return False
        if not 0 <= target < self._total:
            return False
        if target == self._current_index:
            return False
        self._direction = 1 if target > self._current_index else -1
        self._current_index = target
        return True

    def resize(self, total: int) -> None:
        """Adopt a rebuilt sequence length, resetting if the position fell off the end."""
        self._total = max(0, int(total))
        if self._current_index >= self._total:
            self._current_index = 0
            self._direction = 0
