"""Call stack frames."""

from dataclasses import dataclass

INTERRUPT_PREFIX = 'INT_'


@dataclass
class StackFrame:
    """
    One live activation on the reconstructed call stack.

    Attributes:
        symbol: Symbol name of the region that was entered
        start_address: Entry address of that region
        opened_at: Trace time the frame was pushed
        has_opened_child: Set once anything is pushed above this frame
        reported: Whether the call-trace log has printed this frame's opener
        depth: Stack depth at push time (0 = bottom)
    """
    symbol: str
    start_address: int
    opened_at: int
    has_opened_child: bool = False
    reported: bool = False
    depth: int = 0

    @property
    def is_interrupt(self) -> bool:
        return self.symbol.startswith(INTERRUPT_PREFIX)

    def elapsed(self, now: int) -> int:
        return now - self.opened_at
