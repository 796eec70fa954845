"""Configuration management for gbvm-bench."""

from .schema import (
    BenchConfig,
    MemoryLayout,
    TimingConfig,
    RunConfig,
    ReportConfig,
    CAPTURE_MODES,
    load_config,
    generate_default_config,
)

__all__ = [
    'BenchConfig',
    'MemoryLayout',
    'TimingConfig',
    'RunConfig',
    'ReportConfig',
    'CAPTURE_MODES',
    'load_config',
    'generate_default_config',
]
