"""
Benchmark session: wires a host to the tracker and produces the trace.

    SymbolTable -> RegionBuilder -> RegionIndex -> CallStackTracker
                                                        |
    EmulatorHost --(pc, bank, time) per instruction-----+
                                                        v
                                TraceRecorder -> WindowAggregator -> FrameReport

One session is one run. The session owns the tracker exclusively; the
aggregator only reads the recorder between frames.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .config.schema import BenchConfig
from .core.errors import BenchError, ErrorCode
from .core.report import FrameReport
from .hosts.base import EmulatorHost
from .regions.builder import RegionBuilder
from .regions.index import RegionIndex
from .symbols.table import SymbolTable
from .tracking.heuristics import ReentryHeuristic
from .tracking.tracker import CallStackTracker
from .trace.recorder import TraceRecorder
from .trace.window import WindowAggregator

logger = logging.getLogger(__name__)

CAPTURE_DIR = 'captures'
FINAL_FRAME = 'final_frame.png'


def capture_name(frame_index: int) -> str:
    return f"frame_{frame_index:04d}.png"


class BenchmarkSession:
    """
    Run a host for N frames while reconstructing the call stack.

    Example:
        session = BenchmarkSession(host, load_noi('game.noi'), config)
        session.run(frames=60)
        recorder = session.finish()
        SpeedscopeExporter(out_dir).write(recorder)
    """

    def __init__(
        self,
        host: EmulatorHost,
        symbols: Optional[SymbolTable],
        config: Optional[BenchConfig] = None,
        export_dir: Optional[Path] = None,
        heuristic: Optional[ReentryHeuristic] = None,
    ):
        self.host = host
        self.symbols = symbols if symbols is not None else SymbolTable()
        self.config = config or BenchConfig()
        self.export_dir = Path(export_dir) if export_dir else None

        self.diagnostics: List[BenchError] = list(self.symbols.diagnostics)
        if not self.symbols:
            missing = BenchError(code=ErrorCode.E1001_MISSING_SYMBOL_DATA)
            self.diagnostics.append(missing)
            logger.warning(missing.message)

        layout = self.config.memory
        builder = RegionBuilder(layout)
        self.regions = builder.build(self.symbols)
        self.diagnostics.extend(builder.diagnostics)

        self.index = RegionIndex(self.regions, layout)
        self.recorder = TraceRecorder.for_symbols(
            self.symbols.names(),
            name=self.config.report.profile_name,
            unit=self.config.report.unit,
        )
        self.tracker = CallStackTracker(self.index, self.recorder, layout, heuristic)
        self.aggregator = WindowAggregator(self.recorder)

        self.host.on_instruction = self.tracker.observe

        self.frame_reports: List[FrameReport] = []
        self.frames_run: int = 0
        self.finished: bool = False

    def run(self, frames: Optional[int] = None, capture: Optional[str] = None) -> List[FrameReport]:
        """
        Run up to ``frames`` frames (default from config).

        Stops early when the host runs out of input.
        """
        if self.finished:
            raise RuntimeError("Session already finished")

        frames = self.config.run.frames if frames is None else frames
        capture = self.config.run.capture if capture is None else capture

        for i in range(frames):
            if logger.isEnabledFor(logging.INFO):
                logger.info(f"= FRAME {i} {'=' * 66}")

            frame_start = self.host.time
            if not self.host.run_frame():
                logger.debug(f"Host exhausted after {self.frames_run} frames")
                break
            self.frames_run += 1

            if capture == 'all':
                self._capture(Path(CAPTURE_DIR) / capture_name(i), frame_start)

            self.report_frame(i, frame_start, self.host.time)

        if capture == 'exit' and self.frames_run:
            self._capture(Path(FINAL_FRAME), None)

        return self.frame_reports

    def _capture(self, relative: Path, at: Optional[int]) -> None:
        if self.export_dir is None:
            return

        target = self.export_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if self.host.capture(target) and at is not None:
            self.recorder.capture(at, relative.as_posix())

    def report_frame(self, frame_index: int, start: int, end: int) -> FrameReport:
        """Aggregate [start, end) and log the frame report."""
        report = FrameReport(
            frame_index=frame_index,
            start=start,
            end=end,
            entries=self.aggregator.report(start, end),
            cycles_per_frame=self.config.timing.cycles_per_frame,
            bar_width=self.config.report.bar_width,
            name_width=self.symbols.longest_name(),
        )
        self.frame_reports.append(report)

        if logger.isEnabledFor(logging.INFO):
            for line in report.lines():
                logger.info(line)
        return report

    def finish(self) -> TraceRecorder:
        """Close every frame still open at the host's final time."""
        if not self.finished:
            self.tracker.finish(self.host.time)
            self.host.close()
            self.finished = True

            if self.tracker.unresolved:
                self.diagnostics.append(BenchError(
                    code=ErrorCode.E2001_UNRESOLVED_ADDRESS,
                    context={'instructions': self.tracker.unresolved},
                ))
            self.diagnostics.extend(self.tracker.diagnostics)

        return self.recorder

    def summary(self) -> dict:
        return {
            'frames': self.frames_run,
            'symbols': len(self.symbols),
            'events': len(self.recorder.events),
            'end_value': self.recorder.end_value,
            'tracker': self.tracker.summary(),
            'index': self.index.stats(),
            'diagnostics': [d.to_dict() for d in self.diagnostics],
        }
