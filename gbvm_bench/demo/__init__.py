"""
Synthetic runs for demos and tests.

Generates observation streams (and matching .noi symbols) for a small
GBVM-like program, so the profiler can be exercised without an emulator.
"""

from .program_generator import (
    FunctionSpec,
    SyntheticProgram,
    ProgramGenerator,
    default_program,
    frame_end_times,
    generate_run,
)

__all__ = [
    'FunctionSpec',
    'SyntheticProgram',
    'ProgramGenerator',
    'default_program',
    'frame_end_times',
    'generate_run',
]
