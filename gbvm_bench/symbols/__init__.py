"""
Symbol tables.

Loaders turn debug-symbol files into a SymbolTable of
(name, address, bank) records for the region builder.
"""

from .table import SymbolRecord, SymbolTable, ADDRESS_MASK
from .noi import parse_noi, load_noi, noi_path_for_rom, normalize_name, split_address

__all__ = [
    'SymbolRecord',
    'SymbolTable',
    'ADDRESS_MASK',
    'parse_noi',
    'load_noi',
    'noi_path_for_rom',
    'normalize_name',
    'split_address',
]
