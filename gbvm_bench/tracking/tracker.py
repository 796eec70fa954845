"""
Call-stack tracker.

Reconstructs calls and returns from nothing but "the CPU is executing
address A in bank B at time T", delivered once per retired instruction.

Transition rules, evaluated in order for each observation:

    0. pc below the vector limit     -> ignored (reset/interrupt vectors)
    1. resolve region for (pc, bank)
    2. no region                     -> untracked; forget current region,
                                        leave the stack alone
       same region as before         -> nothing to do
    3. pc == region.start            -> call: push a frame
    4. pc inside region, not start   -> ask the re-entry heuristic:
         RETURN: pop and close frames down to the region's frame
         CALL:   push a frame

The tracker never fails hard. Unresolved addresses are untracked time, and
a return with no matching frame degrades to a push.
"""

import logging
from typing import List, Optional

from ..config.schema import MemoryLayout
from ..core.errors import BenchError, ErrorCode
from ..regions.builder import Region
from ..regions.index import RegionIndex
from ..trace.recorder import TraceRecorder
from .frames import StackFrame
from .heuristics import Reentry, ReentryHeuristic, StackMembershipHeuristic

logger = logging.getLogger(__name__)

# Indented call tree, enabled with INFO on this logger
calltrace = logging.getLogger('gbvm_bench.tracking.calltrace')

INDENT = '|   '


class CallStackTracker:
    """
    Per-instruction call-stack state machine.

    The tracker holds no reference to the emulator; every observation
    carries its own pc, bank and time.

    Usage:
        tracker = CallStackTracker(index, recorder)
        for pc, bank, time in observations:
            tracker.observe(pc, bank, time)
        tracker.finish()
    """

    def __init__(
        self,
        index: RegionIndex,
        recorder: TraceRecorder,
        layout: Optional[MemoryLayout] = None,
        heuristic: Optional[ReentryHeuristic] = None,
    ):
        self.index = index
        self.recorder = recorder
        self.layout = layout or index.layout
        self.heuristic = heuristic or StackMembershipHeuristic()

        self.current: Optional[Region] = None
        self.stack: List[StackFrame] = []

        # Last observation
        self.last_pc: Optional[int] = None
        self.last_bank: Optional[int] = None
        self.last_time: int = 0

        # Counters
        self.observed: int = 0
        self.ignored: int = 0
        self.unresolved: int = 0
        self.calls: int = 0
        self.returns: int = 0
        self.underflows: int = 0

        self.diagnostics: List[BenchError] = []

    def observe(self, pc: int, bank: int, time: int) -> None:
        """Feed one retired instruction."""
        self.observed += 1
        self.last_pc = pc
        self.last_bank = bank
        self.last_time = time

        if pc < self.layout.vector_limit:
            self.ignored += 1
            return

        region = self.index.lookup(pc, bank)

        if region is None:
            self.unresolved += 1
            self.current = None
            return

        if region is self.current:
            return

        if pc == region.start:
            self._push(region, time)
        elif self.heuristic.classify(region, self.stack) is Reentry.RETURN:
            if not self._unwind_to(region.name, time):
                self._underflow(region, pc, bank, time)
                self._push(region, time)
        else:
            self._push(region, time)

        self.current = region

    # Callback signature expected by EmulatorHost
    __call__ = observe

    def finish(self, time: Optional[int] = None) -> int:
        """
        Force-close every open frame at ``time`` (default: last observation).

        Returns the number of frames closed.
        """
        if time is None:
            time = self.last_time

        closed = 0
        while self.stack:
            self._pop(time)
            closed += 1

        self.current = None
        if closed:
            logger.debug(f"Force-closed {closed} frames at {time}")
        return closed

    def _push(self, region: Region, time: int) -> StackFrame:
        if self.stack:
            parent = self.stack[-1]
            parent.has_opened_child = True
            if not parent.reported:
                if calltrace.isEnabledFor(logging.INFO):
                    calltrace.info(f"{INDENT * parent.depth}+- {self._label(parent)}")
                parent.reported = True

        frame = StackFrame(
            symbol=region.name,
            start_address=region.start,
            opened_at=time,
            depth=len(self.stack),
        )
        self.stack.append(frame)
        self.recorder.open(region.name, time)
        self.calls += 1
        return frame

    def _pop(self, time: int) -> StackFrame:
        frame = self.stack.pop()
        self.recorder.close(frame.symbol, time)
        if calltrace.isEnabledFor(logging.INFO):
            calltrace.info(
                f"{INDENT * frame.depth}└- {self._label(frame)} {frame.elapsed(time)}"
            )
        return frame

    def _unwind_to(self, symbol: str, time: int) -> bool:
        """Pop frames until the topmost frame for ``symbol`` is on top."""
        for i in range(len(self.stack) - 1, -1, -1):
            if self.stack[i].symbol == symbol:
                while len(self.stack) > i + 1:
                    self._pop(time)
                self.returns += 1
                return True
        return False

    def _underflow(self, region: Region, pc: int, bank: int, time: int) -> None:
        self.underflows += 1
        self.diagnostics.append(BenchError(
            code=ErrorCode.E2002_STACK_UNDERFLOW,
            context={'symbol': region.name, 'pc': pc, 'bank': bank, 'time': time},
        ))

    @staticmethod
    def _label(frame: StackFrame) -> str:
        return f"[INT] {frame.symbol}" if frame.is_interrupt else frame.symbol

    @property
    def depth(self) -> int:
        return len(self.stack)

    def stack_symbols(self) -> List[str]:
        """Symbols on the stack, bottom first."""
        return [f.symbol for f in self.stack]

    def summary(self) -> dict:
        """Get summary statistics."""
        return {
            'observed': self.observed,
            'ignored': self.ignored,
            'unresolved': self.unresolved,
            'calls': self.calls,
            'returns': self.returns,
            'underflows': self.underflows,
            'depth': self.depth,
        }
