"""
gbvm-bench v0.3 - Call-stack profiling for banked Game Boy (GBVM) runs.

This package provides:
- symbols: .noi parsing into (name, address, bank) symbol tables
- regions: Per-bank address regions and the cached region index
- tracking: Call-stack reconstruction from PC/bank observations
- trace: Open/close event recording and windowed aggregation
- hosts: Emulator host interface and observation-log replay
- exporters: Speedscope profile export
- config: YAML configuration with environment variable support
- cli: Command-line interface
"""

__version__ = "0.3.0"

from .config import BenchConfig, MemoryLayout, load_config
from .core import ErrorCode, BenchError, FrameReport
from .symbols import SymbolRecord, SymbolTable, parse_noi, load_noi
from .regions import Region, RegionBuilder, RegionIndex, build_regions
from .tracking import (
    StackFrame,
    Reentry,
    ReentryHeuristic,
    StackMembershipHeuristic,
    CallStackTracker,
)
from .trace import TraceEvent, CaptureMarker, TraceRecorder, WindowAggregator, WindowEntry, report_window
from .hosts import EmulatorHost, Observation, ReplayHost, ObservationListHost
from .session import BenchmarkSession
from .exporters import SpeedscopeExporter, load_speedscope

__all__ = [
    # Version
    '__version__',
    # Config
    'BenchConfig',
    'MemoryLayout',
    'load_config',
    # Core
    'ErrorCode',
    'BenchError',
    'FrameReport',
    # Symbols
    'SymbolRecord',
    'SymbolTable',
    'parse_noi',
    'load_noi',
    # Regions
    'Region',
    'RegionBuilder',
    'RegionIndex',
    'build_regions',
    # Tracking
    'StackFrame',
    'Reentry',
    'ReentryHeuristic',
    'StackMembershipHeuristic',
    'CallStackTracker',
    # Trace
    'TraceEvent',
    'CaptureMarker',
    'TraceRecorder',
    'WindowAggregator',
    'WindowEntry',
    'report_window',
    # Hosts
    'EmulatorHost',
    'Observation',
    'ReplayHost',
    'ObservationListHost',
    # Session
    'BenchmarkSession',
    # Exporters
    'SpeedscopeExporter',
    'load_speedscope',
]
