"""Address regions: building them from symbols and resolving PCs to them."""

from .builder import Region, RegionMap, RegionBuilder, build_regions
from .index import RegionIndex

__all__ = [
    'Region',
    'RegionMap',
    'RegionBuilder',
    'build_regions',
    'RegionIndex',
]
