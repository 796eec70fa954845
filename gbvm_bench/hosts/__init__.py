"""
Emulator hosts.

A host drives the CPU and reports each retired instruction to the tracker.
"""

from .base import EmulatorHost, Observation, InstructionCallback
from .replay import (
    ReplayHost,
    ObservationListHost,
    read_observation_log,
    write_observation_log,
)

__all__ = [
    'EmulatorHost',
    'Observation',
    'InstructionCallback',
    'ReplayHost',
    'ObservationListHost',
    'read_observation_log',
    'write_observation_log',
]
