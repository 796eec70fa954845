"""
Replay host for recorded observation logs.

An observation log is a CSV file written by an instrumented emulator (or by
the synthetic generator in ``gbvm_bench.demo``):

    # kind,pc,bank,time
    kind,pc,bank,time
    I,0x150,0,0
    I,0x153,0,4
    F,,,70256
    I,0x4000,2,70260

Columns:
- kind: I for an executed instruction, F for the end of a display frame
- pc: program counter (decimal or 0x hex); empty on F rows
- bank: mapped switchable bank (decimal or 0x hex); empty on F rows
- time: cycle time; optional on F rows (frame end time)
"""

import csv
from pathlib import Path
from types import GeneratorType
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .base import EmulatorHost, Observation

INSTRUCTION = 'I'
FRAME = 'F'

FIELDS = ['kind', 'pc', 'bank', 'time']

Row = Tuple[str, Optional[Observation], Optional[int]]


def _parse_int(value: str) -> int:
    value = value.strip()
    return int(value, 16) if value.lower().startswith('0x') else int(value)


def read_observation_log(path: Union[Path, str]) -> Iterator[Row]:
    """
    Read an observation log.

    Yields:
        ('I', Observation, None) for instructions,
        ('F', None, frame_end_time_or_None) for frame boundaries

    Raises:
        ValueError: On a malformed row (message names the line)
    """
    with open(path, 'r', newline='') as f:
        # Skip comment lines
        lines = (line for line in f if not line.startswith('#'))
        reader = csv.DictReader(lines)

        if reader.fieldnames is None or 'kind' not in reader.fieldnames:
            raise ValueError(f"{path}: missing header row ({','.join(FIELDS)})")

        for row in reader:
            kind = (row.get('kind') or '').strip().upper()
            try:
                if kind == INSTRUCTION:
                    yield INSTRUCTION, Observation(
                        pc=_parse_int(row['pc']),
                        bank=_parse_int(row['bank']),
                        time=_parse_int(row['time']),
                    ), None
                elif kind == FRAME:
                    end = row.get('time')
                    yield FRAME, None, _parse_int(end) if end and end.strip() else None
                else:
                    raise ValueError(f"unknown kind {kind!r}")
            except (TypeError, ValueError, AttributeError) as e:
                raise ValueError(f"{path}:{reader.line_num}: bad observation row: {e}") from e


def write_observation_log(
    path: Union[Path, str],
    frames: Iterable[Iterable[Observation]],
    frame_end_times: Optional[List[int]] = None,
) -> int:
    """
    Write frames of observations as a log. Returns the instruction count.
    """
    count = 0
    with open(path, 'w', newline='') as f:
        f.write('# gbvm-bench observation log\n')
        writer = csv.writer(f)
        writer.writerow(FIELDS)
        for i, frame in enumerate(frames):
            for obs in frame:
                writer.writerow([INSTRUCTION, f"0x{obs.pc:04X}", obs.bank, obs.time])
                count += 1
            end = frame_end_times[i] if frame_end_times and i < len(frame_end_times) else ''
            writer.writerow([FRAME, '', '', end])
    return count


class ReplayHost(EmulatorHost):
    """
    Replays a recorded log, one frame per run_frame() call.

    Times are taken verbatim from the log. Trailing instructions without a
    closing F row still count as a final frame.

    Example:
        host = ReplayHost('run.csv')
        host.on_instruction = tracker.observe
        while host.run_frame():
            ...
    """

    def __init__(self, source: Union[Path, str, Iterable[Row]]):
        super().__init__()
        if isinstance(source, (str, Path)):
            self.path: Optional[Path] = Path(source)
            self._rows = read_observation_log(self.path)
        else:
            self.path = None
            self._rows = iter(source)

        self._bank = 0
        self._time = 0
        self.instructions: int = 0
        self.exhausted: bool = False

    @property
    def mapped_bank(self) -> int:
        return self._bank

    @property
    def time(self) -> int:
        return self._time

    def run_frame(self) -> bool:
        if self.exhausted:
            return False

        ran = False
        for kind, obs, frame_end in self._rows:
            ran = True
            if kind == FRAME:
                if frame_end is not None:
                    self._time = max(self._time, frame_end)
                self.frames_elapsed += 1
                return True

            self._bank = obs.bank
            self._time = obs.time
            self.instructions += 1
            self.notify(obs.pc, obs.bank, obs.time)

        self.exhausted = True
        if ran:
            self.frames_elapsed += 1
        return ran

    def close(self) -> None:
        """Release the log file when replay stops before the end of the log."""
        if isinstance(self._rows, GeneratorType):
            self._rows.close()
        self.exhausted = True


class ObservationListHost(ReplayHost):
    """Replay host over in-memory frames of observations (handy in tests)."""

    def __init__(self, frames: Iterable[Iterable[Observation]]):
        super().__init__(self._rows_for(frames))

    @staticmethod
    def _rows_for(frames: Iterable[Iterable[Observation]]) -> Iterator[Row]:
        for frame in frames:
            for obs in frame:
                yield INSTRUCTION, obs, None
            yield FRAME, None, None
