"""
Window aggregation: time spent per symbol inside [start, end).

Open/close events are paired back into occurrences by replaying them per
frame index, last-opened-first-closed, so nested recursive activations of
one function each get their own interval. Occurrences still open at the end
of the recorded timeline extend to infinity and are clamped to the window.

Durations are summed per symbol name, not per occurrence, so recursion is
reported as one line.

This is a pure function of the recorded events: querying it once per frame
(or any number of times, for any window) never mutates the recorder.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from .recorder import TraceEvent, TraceRecorder, OPEN, CLOSE

Time = Union[int, float]


@dataclass(frozen=True)
class Occurrence:
    """One activation of a frame: [start, end)."""
    frame: int
    start: Time
    end: Time

    def overlap(self, start: Time, end: Time) -> Time:
        """Length of the intersection with [start, end)."""
        return max(0, min(self.end, end) - max(self.start, start))


@dataclass(frozen=True)
class WindowEntry:
    """Summed duration of one symbol in a window."""
    symbol: str
    duration: Time

    def to_dict(self) -> dict:
        return {'symbol': self.symbol, 'duration': self.duration}


def occurrences(events: Iterable[TraceEvent]) -> List[Occurrence]:
    """Pair opens with closes; unmatched opens run to infinity."""
    stacks: Dict[int, List[Time]] = {}
    result: List[Occurrence] = []

    for event in events:
        if event.type == OPEN:
            stacks.setdefault(event.frame, []).append(event.at)
        elif event.type == CLOSE:
            opened = stacks.get(event.frame)
            # A close with nothing open is ignored, not an error
            if opened:
                result.append(Occurrence(event.frame, opened.pop(), event.at))

    for frame, opened in stacks.items():
        for at in opened:
            result.append(Occurrence(frame, at, math.inf))

    return result


def events_between(events: Iterable[TraceEvent], start: Time, end: Time) -> List[Occurrence]:
    """Occurrences overlapping the window [start, end)."""
    return [o for o in occurrences(events) if o.end > start and o.start < end]


class WindowAggregator:
    """
    Per-symbol durations for arbitrary windows of a recorded trace.

    Example:
        aggregator = WindowAggregator(recorder)
        for entry in aggregator.report(frame_start, frame_end):
            print(entry.symbol, entry.duration)
    """

    def __init__(self, recorder: TraceRecorder):
        self.recorder = recorder

    def report(self, start: Time, end: Time) -> List[WindowEntry]:
        """Descending list of (symbol, duration) for [start, end)."""
        totals: Dict[str, Time] = {}

        for occ in events_between(self.recorder.events, start, end):
            name = self.recorder.frame_name(occ.frame)
            totals[name] = totals.get(name, 0) + occ.overlap(start, end)

        # sorted() is stable: equal durations keep first-seen order
        ranked = sorted(totals.items(), key=lambda item: -item[1])
        return [WindowEntry(symbol=name, duration=duration) for name, duration in ranked]

    def total(self, start: Time, end: Time) -> Time:
        return sum(entry.duration for entry in self.report(start, end))


def report_window(recorder: TraceRecorder, start: Time, end: Time) -> List[WindowEntry]:
    """Convenience wrapper around WindowAggregator.report()."""
    return WindowAggregator(recorder).report(start, end)
