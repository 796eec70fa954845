"""
Region index: (pc, bank) -> owning Region.

This runs once per emulated instruction, so the common case has to be
cheap. PC moves a few bytes at a time and usually stays inside the same
function, so the last resolved region is tested first; only a miss falls
back to a bisect over the bank's sorted start addresses.
"""

from bisect import bisect_right
from typing import Dict, List, Optional

from .builder import Region, RegionMap
from ..config.schema import MemoryLayout


class RegionIndex:
    """
    Resolve program counters to regions.

    Addresses in the fixed area resolve through bank 0 whatever bank is
    mapped; everything else resolves through the mapped bank's list.

    Example:
        index = RegionIndex(regions, layout)
        region = index.lookup(0x4123, bank=3)
        if region is None:
            ...  # untracked address
    """

    def __init__(self, regions: RegionMap, layout: Optional[MemoryLayout] = None):
        self.layout = layout or MemoryLayout()
        self._regions: Dict[int, List[Region]] = {
            bank: sorted(bank_regions, key=lambda r: r.start)
            for bank, bank_regions in regions.items()
        }
        self._starts: Dict[int, List[int]] = {
            bank: [r.start for r in bank_regions]
            for bank, bank_regions in self._regions.items()
        }
        self._cached: Optional[Region] = None

        self.lookups: int = 0
        self.cache_hits: int = 0

    def lookup(self, pc: int, bank: int) -> Optional[Region]:
        """Return the region containing pc for the mapped bank, or None."""
        self.lookups += 1
        target_bank = self.layout.bank_for(pc, bank)

        cached = self._cached
        if cached is not None and cached.bank == target_bank and cached.start <= pc <= cached.end:
            self.cache_hits += 1
            return cached

        region = self._search(pc, target_bank)
        if region is not None:
            self._cached = region
        return region

    def _search(self, pc: int, bank: int) -> Optional[Region]:
        starts = self._starts.get(bank)
        if not starts:
            return None

        i = bisect_right(starts, pc) - 1
        if i < 0:
            return None

        region = self._regions[bank][i]
        if region.contains(pc):
            return region
        return None

    def __len__(self) -> int:
        return sum(len(r) for r in self._regions.values())

    def stats(self) -> dict:
        return {
            'regions': len(self),
            'banks': len(self._regions),
            'lookups': self.lookups,
            'cache_hits': self.cache_hits,
            'hit_rate': self.cache_hits / self.lookups if self.lookups else 0.0,
        }
