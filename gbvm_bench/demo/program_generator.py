"""
Generate synthetic observation streams for demos and tests.

Streams are synthetic but shaped like real GBVM runs:
- a main loop in the fixed bank calling into banked engine code
- returns that resume mid-body in the caller
- an interrupt handler firing at random points
- excursions into a bank with no symbols (untracked time)

The generator also writes the matching .noi text, so a generated run can be
fed through the whole pipeline.
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..hosts.base import Observation

FIXED_START = 0x150
BANKED_START = 0x4000
UNMAPPED_BANK = 0x1F


def _linker_name(name: str) -> str:
    """Static functions (INT_ handlers) are emitted with a segment prefix."""
    if name.startswith(("_", ".")):
        return name
    return f"F_isr${name}$0$0"


@dataclass
class FunctionSpec:
    """A function of the synthetic program."""
    name: str
    bank: int
    size: int
    callees: List[str] = field(default_factory=list)
    address: int = 0

    @property
    def end(self) -> int:
        return self.address + self.size - 1

    @property
    def full_address(self) -> int:
        """Linker-style address with the bank in bits 16-23."""
        return (self.bank << 16) | self.address


@dataclass
class SyntheticProgram:
    """Functions laid out back to back in their banks."""
    functions: Dict[str, FunctionSpec]
    entry: str = '_main'
    interrupt: Optional[str] = None

    @classmethod
    def layout(
        cls,
        specs: List[FunctionSpec],
        entry: str = '_main',
        interrupt: Optional[str] = None,
    ) -> 'SyntheticProgram':
        next_address: Dict[int, int] = {}
        functions = {}
        for spec in specs:
            start = FIXED_START if spec.bank == 0 else BANKED_START
            spec.address = next_address.get(spec.bank, start)
            next_address[spec.bank] = spec.address + spec.size
            functions[spec.name] = spec
        return cls(functions=functions, entry=entry, interrupt=interrupt)

    def to_noi(self) -> str:
        lines = [f"DEF {_linker_name(f.name)} 0x{f.full_address:X}" for f in self.functions.values()]
        return '\n'.join(lines) + '\n'


def default_program() -> SyntheticProgram:
    """Small GBVM-like program: main loop, VM dispatch, banked script ops."""
    return SyntheticProgram.layout(
        [
            FunctionSpec('_main', 0, 0x40, ['_vm_run', '_wait_vbl']),
            FunctionSpec('_wait_vbl', 0, 0x20),
            FunctionSpec('INT_vbl', 0, 0x30),
            FunctionSpec('_vm_run', 0, 0x60, ['_script_op', '_actors_update']),
            FunctionSpec('_script_op', 2, 0x80, ['_vm_math']),
            FunctionSpec('_actors_update', 2, 0x100, ['_vm_math']),
            FunctionSpec('_vm_math', 3, 0x40),
        ],
        entry='_main',
        interrupt='INT_vbl',
    )


class ProgramGenerator:
    """
    Walk a SyntheticProgram, emitting one observation per instruction.

    Example:
        gen = ProgramGenerator(seed=7)
        frames = gen.generate(default_program(), frames=3)
    """

    def __init__(
        self,
        seed: int = 42,
        cycles_per_frame: int = 70256,
        call_probability: float = 0.15,
        interrupt_probability: float = 0.01,
        excursion_probability: float = 0.01,
        max_depth: int = 8,
    ):
        self.seed = seed
        self.rng = random.Random(seed)
        self.cycles_per_frame = cycles_per_frame
        self.call_probability = call_probability
        self.interrupt_probability = interrupt_probability
        self.excursion_probability = excursion_probability
        self.max_depth = max_depth

        self._stream: List[Observation] = []
        self._time = 0
        self._bank = 1
        self._limit = 0
        self._in_interrupt = False

    def generate(self, program: SyntheticProgram, frames: int = 1) -> List[List[Observation]]:
        """Observations for ``frames`` display frames."""
        self._stream = []
        self._time = 0
        self._bank = 1
        self._limit = frames * self.cycles_per_frame

        entry = program.functions[program.entry]
        self._emit(entry.address, entry)
        while self._time < self._limit:
            self._body(program, entry, depth=0, loop=True)

        return self._split(frames)

    def _emit(self, pc: int, fn: Optional[FunctionSpec] = None) -> None:
        if fn is not None and fn.bank != 0:
            self._bank = fn.bank
        self._stream.append(Observation(pc=pc, bank=self._bank, time=self._time))
        self._time += self.rng.choice((4, 8, 12, 16))

    def _body(self, program: SyntheticProgram, fn: FunctionSpec, depth: int, loop: bool = False) -> None:
        offset = 1
        while offset < fn.size and self._time < self._limit:
            self._emit(fn.address + offset, fn)

            roll = self.rng.random()
            if fn.callees and depth < self.max_depth and roll < self.call_probability:
                self._call(program, program.functions[self.rng.choice(fn.callees)], fn, depth)
            elif program.interrupt and not self._in_interrupt and roll > 1 - self.interrupt_probability:
                self._in_interrupt = True
                self._call(program, program.functions[program.interrupt], fn, depth)
                self._in_interrupt = False
            elif roll > 1 - self.interrupt_probability - self.excursion_probability:
                saved = self._bank
                self._bank = UNMAPPED_BANK
                self._emit(BANKED_START + self.rng.randrange(0x100))
                self._bank = saved

            offset += self.rng.choice((1, 2, 3))

        if loop and self._time < self._limit:
            # Jump back to the top of the loop, mid-body
            self._emit(fn.address + 1, fn)

    def _call(self, program: SyntheticProgram, callee: FunctionSpec, caller: FunctionSpec, depth: int) -> None:
        saved = self._bank
        self._emit(callee.address, callee)
        self._body(program, callee, depth + 1)
        self._bank = saved
        # Resume the caller mid-body
        resume = min(caller.end, caller.address + 1 + self.rng.randrange(max(1, caller.size - 1)))
        self._emit(resume, caller)

    def _split(self, frames: int) -> List[List[Observation]]:
        out: List[List[Observation]] = [[] for _ in range(frames)]
        for obs in self._stream:
            i = obs.time // self.cycles_per_frame
            if i < frames:
                out[i].append(obs)
        return out


def frame_end_times(frames: int, cycles_per_frame: int = 70256) -> List[int]:
    return [(i + 1) * cycles_per_frame for i in range(frames)]


def generate_run(
    frames: int = 3,
    seed: int = 42,
    cycles_per_frame: int = 70256,
    program: Optional[SyntheticProgram] = None,
) -> Tuple[SyntheticProgram, List[List[Observation]]]:
    """Program plus its observation frames."""
    program = program or default_program()
    gen = ProgramGenerator(seed=seed, cycles_per_frame=cycles_per_frame)
    return program, gen.generate(program, frames)
