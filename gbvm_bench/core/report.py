"""
Per-frame cost report.

Built once per emulated display frame from the window aggregator: which
functions were live during the frame and for how many cycles, with a bar
scaled against the frame's cycle budget.

Example rendering (bar_width=10, cycles_per_frame=70256):

    - FRAME 3 REPORT -----------------------------------------------
    * _main            70256 |##########| (3)
    * _vm_run          41022 |######----| (3)
    * _wait_vbl         9100 |#---------| (3)
    ----------------------------------------------------------------
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional

from ..trace.window import WindowEntry

RULE_WIDTH = 75


@dataclass
class FrameReport:
    """Window report for one emulated frame."""
    frame_index: int
    start: int
    end: int
    entries: List[WindowEntry] = field(default_factory=list)
    cycles_per_frame: int = 70256
    bar_width: int = 30
    name_width: Optional[int] = None

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def top(self) -> Optional[WindowEntry]:
        return self.entries[0] if self.entries else None

    def bar(self, duration) -> str:
        """Fixed-width bar; durations above the frame budget fill it."""
        clamped = min(duration, self.cycles_per_frame)
        filled = round(clamped / self.cycles_per_frame * self.bar_width)
        return f"|{'#' * filled}{'-' * (self.bar_width - filled)}|"

    def lines(self) -> List[str]:
        width = self.name_width
        if width is None:
            width = max((len(e.symbol) for e in self.entries), default=0)

        header = f"- FRAME {self.frame_index} REPORT "
        lines = ['', header + '-' * max(0, RULE_WIDTH - len(header))]
        for entry in self.entries:
            lines.append(
                f"* {entry.symbol.ljust(width)} {str(entry.duration).rjust(8)} "
                f"{self.bar(entry.duration)} ({self.frame_index})"
            )
        lines.append('-' * RULE_WIDTH)
        lines.append('')
        return lines

    def render(self) -> str:
        return '\n'.join(self.lines())

    def to_dict(self) -> dict:
        return {
            'frame': self.frame_index,
            'start': self.start,
            'end': self.end,
            'entries': [e.to_dict() for e in self.entries],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
