"""
Dirty-flag tracking for the two constants layers.

Subject constants and step constants each carry an independent
CLEAN/STALE status. Parameter writes move a layer to STALE; a successful
recompute moves it back to CLEAN. Every transition is recorded so tests and
drivers can audit when a recompute happened.
"""

from collections import deque
from typing import Deque, Tuple

from .enums import ConstantsStatus

SUBJECT = "subject"
STEP = "step"


class ConstantsTracker:
    """Two-flag state machine: subject/step constants, CLEAN or STALE."""

    def __init__(self, history_len: int = 256):
        self.subject = ConstantsStatus.STALE
        self.step = ConstantsStatus.STALE
        self.history: Deque[Tuple[str, ConstantsStatus, ConstantsStatus]] = deque(maxlen=history_len)

    @property
    def subject_stale(self) -> bool:
        return self.subject is ConstantsStatus.STALE

    @property
    def step_stale(self) -> bool:
        return self.step is ConstantsStatus.STALE

    def _move(self, layer: str, new: ConstantsStatus):
        old = getattr(self, layer)
        setattr(self, layer, new)
        if old is not new:
            self.history.append((layer, old, new))

    def mark_subject_stale(self):
        self._move(SUBJECT, ConstantsStatus.STALE)

    def mark_step_stale(self):
        self._move(STEP, ConstantsStatus.STALE)

    def mark_stale(self, layer: str):
        if layer == SUBJECT:
            self.mark_subject_stale()
        elif layer == STEP:
            self.mark_step_stale()
        else:
            raise ValueError(f"Unknown constants layer: {layer}")

    def subject_recomputed(self):
        self._move(SUBJECT, ConstantsStatus.CLEAN)

    def step_recomputed(self):
        self._move(STEP, ConstantsStatus.CLEAN)

    def mark_all_stale(self):
        self.mark_subject_stale()
        self.mark_step_stale()
