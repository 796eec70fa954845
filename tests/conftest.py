"""Pytest fixtures shared by the gbvm-bench tests."""

from pathlib import Path
from typing import List, Tuple

import pytest

from gbvm_bench.config import MemoryLayout
from gbvm_bench.regions import RegionBuilder, RegionIndex
from gbvm_bench.symbols import SymbolTable
from gbvm_bench.tracking import CallStackTracker
from gbvm_bench.trace import TraceRecorder


SAMPLE_NOI = """\
DEF _main 0x150
DEF _helper 0x200
DEF INT_vbl 0x300
DEF F_engine$_script_runner$0$0 0x24000
DEF _vm_math 0x24100
DEF _rROMB0 0x2000
DEF ___bank_engine 0x2
DEF _actor_data 0x34000
DEF .remove_LCD_ISR 0x380
DEF b_junk 0x1234
"""


@pytest.fixture
def layout() -> MemoryLayout:
    return MemoryLayout()


@pytest.fixture
def sample_noi_text() -> str:
    return SAMPLE_NOI


@pytest.fixture
def sample_noi_file(tmp_path: Path) -> Path:
    path = tmp_path / "game.noi"
    path.write_text(SAMPLE_NOI)
    return path


@pytest.fixture
def main_helper_table() -> SymbolTable:
    """Two fixed-bank functions: main at 0x150, helper at 0x200."""
    return SymbolTable.from_records([
        {'name': 'main', 'address': 0x150, 'bank': 0},
        {'name': 'helper', 'address': 0x200, 'bank': 0},
    ])


class TrackerRig:
    """Symbol table -> regions -> index -> tracker, wired for tests."""

    def __init__(self, table: SymbolTable, layout: MemoryLayout = None):
        self.layout = layout or MemoryLayout()
        self.table = table
        self.regions = RegionBuilder(self.layout).build(table)
        self.index = RegionIndex(self.regions, self.layout)
        self.recorder = TraceRecorder.for_symbols(table.names())
        self.tracker = CallStackTracker(self.index, self.recorder, self.layout)

    def feed(self, observations: List[Tuple[int, int, int]]) -> 'TrackerRig':
        for pc, bank, time in observations:
            self.tracker.observe(pc, bank, time)
        return self

    def events(self) -> List[Tuple[str, str, int]]:
        """Events as (type, symbol, at) for readable assertions."""
        return [
            (e.type, self.recorder.frame_name(e.frame), e.at)
            for e in self.recorder.events
        ]


@pytest.fixture
def make_rig():
    def _make(records, layout=None) -> TrackerRig:
        table = records if isinstance(records, SymbolTable) else SymbolTable.from_records(records)
        return TrackerRig(table, layout)
    return _make


def write_log(path: Path, text: str) -> Path:
    path.write_text(text)
    return path
