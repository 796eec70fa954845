"""
Trace recorder: the single ordered timeline of Open/Close events.

Events are appended in arrival order and never reordered, so the tracker
must be driven strictly in time order. Each distinct symbol gets a stable
frame index, assigned once in order of first appearance in the symbol
table; those indices are what the evented profile refers to.

The recorder serializes to the speedscope evented-profile format:

    {
      "$schema": "https://www.speedscope.app/file-format-schema.json",
      "shared": {"frames": [{"name": "main"}, ...]},
      "profiles": [{"type": "evented", "name": "GBVM Trace", "unit": "frames",
                    "startValue": 0, "endValue": 1234,
                    "events": [{"type": "O", "at": 0, "frame": 0}, ...]}],
      "captures": [{"src": "captures/frame_0000.png", "at": 0}]
    }
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

SPEEDSCOPE_SCHEMA = 'https://www.speedscope.app/file-format-schema.json'

OPEN = 'O'
CLOSE = 'C'


@dataclass(frozen=True)
class TraceEvent:
    """Open or close of one frame occurrence at a point in time."""
    type: str
    at: int
    frame: int

    def to_dict(self) -> dict:
        return {'type': self.type, 'at': self.at, 'frame': self.frame}


@dataclass(frozen=True)
class CaptureMarker:
    """External artifact (e.g. a screenshot) taken at a trace time."""
    at: int
    src: str

    def to_dict(self) -> dict:
        return {'src': self.src, 'at': self.at}


@dataclass
class TraceRecorder:
    """
    Accumulates the event timeline for one run.

    Example:
        recorder = TraceRecorder.for_symbols(table.names())
        recorder.open('main', 0)
        recorder.close('main', 120)
        data = recorder.to_speedscope()
    """

    frames: List[str] = field(default_factory=list)
    events: List[TraceEvent] = field(default_factory=list)
    captures: List[CaptureMarker] = field(default_factory=list)
    name: str = 'GBVM Trace'
    unit: str = 'frames'
    _index: Dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        for i, frame in enumerate(self.frames):
            self._index.setdefault(frame, i)

    @classmethod
    def for_symbols(cls, names: Iterable[str], **kwargs) -> 'TraceRecorder':
        """Create a recorder whose frame table follows the symbol order."""
        recorder = cls(**kwargs)
        for name in names:
            recorder.frame_index(name)
        return recorder

    def frame_index(self, symbol: str) -> int:
        """Stable index for a symbol, registering it on first use."""
        index = self._index.get(symbol)
        if index is None:
            index = len(self.frames)
            self.frames.append(symbol)
            self._index[symbol] = index
        return index

    def open(self, symbol: str, at: int) -> TraceEvent:
        event = TraceEvent(OPEN, at, self.frame_index(symbol))
        self.events.append(event)
        return event

    def close(self, symbol: str, at: int) -> TraceEvent:
        event = TraceEvent(CLOSE, at, self.frame_index(symbol))
        self.events.append(event)
        return event

    def capture(self, at: int, src: str) -> CaptureMarker:
        marker = CaptureMarker(at=at, src=src)
        self.captures.append(marker)
        return marker

    def frame_name(self, frame: int) -> str:
        return self.frames[frame]

    @property
    def open_count(self) -> int:
        return sum(1 for e in self.events if e.type == OPEN)

    @property
    def close_count(self) -> int:
        return sum(1 for e in self.events if e.type == CLOSE)

    @property
    def end_value(self) -> int:
        """Time of the last close event (0 for an empty trace)."""
        return max((e.at for e in self.events if e.type == CLOSE), default=0)

    def to_speedscope(self, end_value: Optional[int] = None) -> dict:
        """Serialize as a speedscope evented profile."""
        return {
            '$schema': SPEEDSCOPE_SCHEMA,
            'shared': {
                'frames': [{'name': name} for name in self.frames],
            },
            'profiles': [
                {
                    'type': 'evented',
                    'name': self.name,
                    'unit': self.unit,
                    'startValue': 0,
                    'endValue': self.end_value if end_value is None else end_value,
                    'events': [e.to_dict() for e in self.events],
                },
            ],
            'captures': [c.to_dict() for c in self.captures],
        }

    @classmethod
    def from_speedscope(cls, data: dict, profile: int = 0) -> 'TraceRecorder':
        """
        Load a recorder back from a speedscope document.

        Raises:
            ValueError: If the document has no evented profile at that index,
                or an event or capture entry is malformed
        """
        try:
            frames = [f['name'] for f in data['shared']['frames']]
            prof = data['profiles'][profile]
            kind = prof.get('type')
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ValueError(f"Not a speedscope document: {e}") from e

        if kind != 'evented':
            raise ValueError(f"Profile {profile} is not evented: {kind}")

        recorder = cls(
            frames=frames,
            name=prof.get('name', 'GBVM Trace'),
            unit=prof.get('unit', 'frames'),
        )
        try:
            for i, e in enumerate(prof.get('events', [])):
                if e['type'] not in (OPEN, CLOSE):
                    raise ValueError(f"Unknown event type: {e['type']}")
                frame = int(e['frame'])
                if not 0 <= frame < len(frames):
                    raise ValueError(f"event {i} refers to frame {frame}, only {len(frames)} frames")
                recorder.events.append(TraceEvent(e['type'], int(e['at']), frame))
            for c in data.get('captures', []):
                recorder.captures.append(CaptureMarker(at=int(c['at']), src=c['src']))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed speedscope entry: missing or bad field {e}") from e
        return recorder
