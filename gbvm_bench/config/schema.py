"""
Configuration schema for gbvm-bench.

Supports:
- YAML file loading
- Environment variable substitution (${VAR_NAME})
- Validation with error messages

The memory section describes the target's banked address space. Defaults
match the Game Boy MBC layout; change them to profile other banked targets.

Example config (gbvm-bench.yml):
    version: 1

    memory:
      switchable_start: 0x4000
      banked_max: 0x7FFF

    run:
      frames: ${BENCH_FRAMES}
      capture: none
"""

import os
import re
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Any

import yaml


CAPTURE_MODES = ('all', 'exit', 'none')


def _substitute_env_vars(value: Any) -> Any:
    """
    Substitute ${VAR_NAME} with environment variable values.

    Example:
        ${BENCH_FRAMES} → os.environ.get('BENCH_FRAMES')
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}'

        def replace(match):
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                return match.group(0)  # Keep original if not found
            return env_value

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]

    return value


def _as_int(value: Any) -> Any:
    """Coerce substituted strings ("60", "0x4000") back to integers."""
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            return value
    return value


def _int_fields(data: dict) -> dict:
    return {k: _as_int(v) for k, v in data.items()}


@dataclass
class MemoryLayout:
    """
    Banked address space of the target.

    Addresses below ``switchable_start`` are the fixed bank (bank 0) and
    resolve regardless of the mapped bank. Instructions below
    ``vector_limit`` are reset/interrupt vector dispatch and are ignored.
    """
    switchable_start: int = 0x4000
    fixed_max: int = 0x3FFF
    banked_max: int = 0x7FFF
    vector_limit: int = 336

    def bank_max(self, bank: int) -> int:
        """Highest address a region in ``bank`` may cover."""
        return self.fixed_max if bank == 0 else self.banked_max

    def is_fixed(self, address: int) -> bool:
        return address < self.switchable_start

    def bank_for(self, address: int, bank: int) -> int:
        """Bank whose region list owns ``address`` while ``bank`` is mapped."""
        return 0 if self.is_fixed(address) else bank


@dataclass
class TimingConfig:
    """Clock settings."""
    cycles_per_frame: int = 70256


@dataclass
class RunConfig:
    """Benchmark run settings."""
    frames: int = 60
    capture: str = 'all'


@dataclass
class ReportConfig:
    """Frame report and export settings."""
    bar_width: int = 30
    profile_name: str = 'GBVM Trace'
    unit: str = 'frames'


@dataclass
class BenchConfig:
    """Root configuration."""

    version: int = 1
    memory: MemoryLayout = field(default_factory=MemoryLayout)
    timing: TimingConfig = field(default_factory=TimingConfig)
    run: RunConfig = field(default_factory=RunConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    @classmethod
    def load(cls, path: Path) -> 'BenchConfig':
        """Load from YAML file with env var substitution."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        data = _substitute_env_vars(data)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'BenchConfig':
        """Create from dictionary."""
        run = dict(data.get('run', {}))
        if 'frames' in run:
            run['frames'] = _as_int(run['frames'])

        report = dict(data.get('report', {}))
        if 'bar_width' in report:
            report['bar_width'] = _as_int(report['bar_width'])

        return cls(
            version=_as_int(data.get('version', 1)),
            memory=MemoryLayout(**_int_fields(data.get('memory', {}))),
            timing=TimingConfig(**_int_fields(data.get('timing', {}))),
            run=RunConfig(**run),
            report=ReportConfig(**report),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate config. Returns list of errors (empty if valid)."""
        errors = []
        mem = self.memory

        for name in ('switchable_start', 'fixed_max', 'banked_max', 'vector_limit'):
            value = getattr(mem, name)
            if not isinstance(value, int) or not 0 <= value <= 0xFFFF:
                errors.append(f"Invalid memory.{name}: {value}")

        if not errors:
            if mem.fixed_max >= mem.switchable_start:
                errors.append("memory.fixed_max must be below memory.switchable_start")
            if mem.banked_max < mem.switchable_start:
                errors.append("memory.banked_max must not be below memory.switchable_start")
            if mem.vector_limit > mem.switchable_start:
                errors.append("memory.vector_limit must lie inside the fixed bank")

        if not isinstance(self.timing.cycles_per_frame, int) or self.timing.cycles_per_frame <= 0:
            errors.append(f"Invalid cycles_per_frame: {self.timing.cycles_per_frame}")

        if not isinstance(self.run.frames, int) or self.run.frames < 0:
            errors.append(f"Invalid frames: {self.run.frames}")

        if self.run.capture not in CAPTURE_MODES:
            errors.append(
                f"Invalid capture mode: {self.run.capture} "
                f"(expected one of {', '.join(CAPTURE_MODES)})"
            )

        if not isinstance(self.report.bar_width, int) or self.report.bar_width <= 0:
            errors.append(f"Invalid bar_width: {self.report.bar_width}")

        return errors


def load_config(path: Optional[Path] = None) -> BenchConfig:
    """Load config from file or return defaults."""
    if path and Path(path).exists():
        return BenchConfig.load(path)

    search_paths = [
        Path('./gbvm-bench.yml'),
        Path('./gbvm-bench.yaml'),
        Path.home() / '.gbvm-bench' / 'config.yml',
    ]

    for p in search_paths:
        if p.exists():
            return BenchConfig.load(p)

    return BenchConfig()


def generate_default_config() -> str:
    """Generate default config as YAML."""
    return """# gbvm-bench configuration
version: 1

memory:
  switchable_start: 0x4000
  fixed_max: 0x3FFF
  banked_max: 0x7FFF
  vector_limit: 336

timing:
  cycles_per_frame: 70256

run:
  frames: 60
  capture: all

report:
  bar_width: 30
  profile_name: GBVM Trace
  unit: frames
"""
