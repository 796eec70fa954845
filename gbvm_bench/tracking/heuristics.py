"""
Re-entry heuristics.

When execution lands in the middle of a known region there is no ground
truth about what happened: the emulator doesn't tell us about call or
return instructions. HEURISTIC: this module decides whether such a landing
is a return into a caller or a fresh call.

Keeping the decision behind one class lets alternate strategies be swapped
into the tracker without touching its state machine.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence

from ..regions.builder import Region
from .frames import StackFrame


class Reentry(Enum):
    """Outcome of a mid-region landing."""
    CALL = 'call'
    RETURN = 'return'


class ReentryHeuristic(ABC):
    """Decides how to interpret a jump into the middle of a region."""

    @abstractmethod
    def classify(self, region: Region, stack: Sequence[StackFrame]) -> Reentry:
        """
        Classify a landing at a non-entry address of ``region``.

        Args:
            region: Region that now contains the PC
            stack: Current call stack, bottom first

        Returns:
            Reentry.RETURN to unwind to the region's frame,
            Reentry.CALL to push a new frame
        """
        pass


class StackMembershipHeuristic(ReentryHeuristic):
    """
    Return if the region's symbol is live anywhere on the stack, else call.

    This models the usual non-tail return: the callee finishes and control
    resumes mid-body in a caller that is still on the stack. A landing in a
    function that is not on the stack (an interrupt handler, an optimized
    jump target) is treated as a call.
    """

    def classify(self, region: Region, stack: Sequence[StackFrame]) -> Reentry:
        for frame in stack:
            if frame.symbol == region.name:
                return Reentry.RETURN
        return Reentry.CALL
