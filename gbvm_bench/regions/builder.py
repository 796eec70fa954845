"""
Region builder: turn point symbols into address ranges.

A symbol only marks where a function starts. Every address from there up to
the next symbol in the same bank (or the end of the bank) is attributed to
it, so within a bank the regions tile the space above the first symbol
without overlapping.

Example (fixed bank, fixed_max = 0x3FFF):
    main   0x150  ->  main:   [0x150, 0x1FF]
    helper 0x200  ->  helper: [0x200, 0x3FFF]
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..config.schema import MemoryLayout
from ..core.errors import BenchError, ErrorCode
from ..symbols.table import SymbolRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Region:
    """Contiguous address range [start, end] owned by one symbol in one bank."""
    name: str
    bank: int
    start: int
    end: int

    def contains(self, pc: int) -> bool:
        return self.start <= pc <= self.end

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'bank': self.bank,
            'start': self.start,
            'end': self.end,
        }

    def __repr__(self) -> str:
        return f"Region({self.name!r}, {self.bank:02X}:{self.start:04X}-{self.end:04X})"


RegionMap = Dict[int, List[Region]]


@dataclass
class RegionBuilder:
    """
    Build per-bank region lists from symbol records.

    Duplicate (bank, address) records resolve last-write-wins. A record whose
    address lies above its bank's maximum can't own a valid range and is
    skipped with an E2003 diagnostic.

    Usage:
        builder = RegionBuilder(layout)
        regions = builder.build(table)
        regions[0]  # sorted Region list for the fixed bank
    """

    layout: MemoryLayout = field(default_factory=MemoryLayout)
    diagnostics: List[BenchError] = field(default_factory=list)

    def build(self, symbols: Iterable[SymbolRecord]) -> RegionMap:
        by_bank: Dict[int, Dict[int, SymbolRecord]] = {}

        for record in symbols:
            bank_max = self.layout.bank_max(record.bank)
            if record.address > bank_max:
                self.diagnostics.append(BenchError(
                    code=ErrorCode.E2003_MALFORMED_REGION,
                    context={
                        'symbol': record.name,
                        'bank': record.bank,
                        'address': record.address,
                        'bank_max': bank_max,
                    },
                ))
                continue
            by_bank.setdefault(record.bank, {})[record.address] = record

        regions: RegionMap = {}
        for bank, located in by_bank.items():
            bank_max = self.layout.bank_max(bank)
            ordered = [located[address] for address in sorted(located)]

            bank_regions = []
            for i, record in enumerate(ordered):
                if i + 1 < len(ordered):
                    end = min(bank_max, ordered[i + 1].address - 1)
                else:
                    end = bank_max
                bank_regions.append(Region(
                    name=record.name,
                    bank=bank,
                    start=record.address,
                    end=end,
                ))
            regions[bank] = bank_regions

        if self.diagnostics:
            logger.warning(f"Skipped {len(self.diagnostics)} symbols outside their bank")
        logger.debug(
            f"Built {sum(len(r) for r in regions.values())} regions "
            f"across {len(regions)} banks"
        )
        return regions


def build_regions(
    symbols: Iterable[SymbolRecord],
    layout: Optional[MemoryLayout] = None,
) -> RegionMap:
    """Convenience wrapper around RegionBuilder.build()."""
    return RegionBuilder(layout or MemoryLayout()).build(symbols)
