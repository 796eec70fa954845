"""
Emulator host interface.

The profiler doesn't emulate anything itself. A host wraps whatever drives
the CPU (a real emulator binding, or a recorded observation log) and
exposes what the session needs:

- a per-instruction callback with (pc, mapped bank, time)
- a frame boundary (run_frame() returns after one display frame)
- an optional screen capture for each frame
- queries for the mapped bank and the current time

Time is the cycle counter plus frames_elapsed * cycles_per_frame, and must
never decrease.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

InstructionCallback = Callable[[int, int, int], None]


@dataclass(frozen=True)
class Observation:
    """One retired instruction."""
    pc: int
    bank: int
    time: int


class EmulatorHost(ABC):
    """
    Abstract base class for anything that can feed the tracker.

    Subclasses call ``self.notify(pc, bank, time)`` once per retired
    instruction while ``run_frame()`` executes.
    """

    def __init__(self):
        self.on_instruction: Optional[InstructionCallback] = None
        self.frames_elapsed: int = 0

    @abstractmethod
    def run_frame(self) -> bool:
        """
        Execute one display frame.

        Returns:
            False if the host had nothing left to run, True otherwise
        """
        pass

    @property
    @abstractmethod
    def mapped_bank(self) -> int:
        """Currently mapped switchable ROM bank."""
        pass

    @property
    @abstractmethod
    def time(self) -> int:
        """Current cycle time."""
        pass

    def capture(self, path: Path) -> bool:
        """
        Save the current screen to ``path``.

        Hosts without a screen return False and no capture marker is
        recorded.
        """
        return False

    def close(self) -> None:
        """Release any resources held by the host."""
        pass

    def notify(self, pc: int, bank: int, time: int) -> None:
        if self.on_instruction is not None:
            self.on_instruction(pc, bank, time)
