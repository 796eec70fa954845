"""Event timeline recording and windowed aggregation."""

from .recorder import (
    TraceEvent,
    CaptureMarker,
    TraceRecorder,
    SPEEDSCOPE_SCHEMA,
    OPEN,
    CLOSE,
)
from .window import (
    Occurrence,
    WindowEntry,
    WindowAggregator,
    occurrences,
    events_between,
    report_window,
)

__all__ = [
    'TraceEvent',
    'CaptureMarker',
    'TraceRecorder',
    'SPEEDSCOPE_SCHEMA',
    'OPEN',
    'CLOSE',
    'Occurrence',
    'WindowEntry',
    'WindowAggregator',
    'occurrences',
    'events_between',
    'report_window',
]
