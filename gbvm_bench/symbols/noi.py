"""
Parser for GBDK/SDCC ``.noi`` symbol files.

A .noi file is a list of ``DEF <symbol> <hex address>`` lines written by the
linker. Only code symbols are interesting for call tracking, so data,
register and bank-marker symbols are filtered out.

The full address carries the ROM bank in bits 16-23; addresses in the fixed
area (below 0x4000) always belong to bank 0.

Example:
    DEF _main 0x150
    DEF F_engine$_script_runner$0$0 0x24000
"""

import logging
import re
from pathlib import Path
from typing import Union

from .table import SymbolTable, ADDRESS_MASK
from ..core.errors import BenchError, ErrorCode

logger = logging.getLogger(__name__)


FIXED_BANK_END = 0x4000

# Symbols that name code (C functions, F-prefixed statics, ISRs, runtime math)
CODE_SYMBOL = re.compile(r'^DEF (_|F|\..*ISR|\.remove_|\.add_|\.mod|\.div)')

# Code-looking prefixes that are really registers, bank markers or save data
EXCLUDED = (
    '_REG',
    '_rRAM',
    '_rROM',
    '_rMBC',
    '__start_save',
    '___bank_',
    '___func_',
    '___mute_mask_',
)

_SEGMENT_PREFIX = re.compile(r'^F([^$]+)\$')
_SEGMENT_SUFFIX = re.compile(r'\$.*')


def normalize_name(raw: str) -> str:
    """
    Strip the relocation/segment decoration from a linker symbol.

    Examples:
        normalize_name('_main') = '_main'
        normalize_name('F_engine$_script_runner$0$0') = '_script_runner'
    """
    return _SEGMENT_SUFFIX.sub('', _SEGMENT_PREFIX.sub('', raw, count=1))


def split_address(full_address: int, fixed_end: int = FIXED_BANK_END):
    """Split a 24-bit linker address into (cpu address, bank)."""
    address = full_address & ADDRESS_MASK
    bank = 0 if address < fixed_end else (full_address >> 16) & 0xFF
    return address, bank


def parse_noi(text: str, fixed_end: int = FIXED_BANK_END) -> SymbolTable:
    """
    Parse .noi text into a SymbolTable.

    Lines with an unreadable address are recorded as diagnostics on the
    returned table rather than aborting the parse.
    """
    table = SymbolTable()

    for lineno, line in enumerate(text.split('\n'), start=1):
        if not CODE_SYMBOL.match(line):
            continue
        if any(marker in line for marker in EXCLUDED):
            continue

        parts = line.strip().split()
        try:
            symbol = parts[1]
            full_address = int(parts[2], 16)
        except (IndexError, ValueError):
            table.diagnostics.append(BenchError(
                code=ErrorCode.E1002_MALFORMED_SYMBOL_LINE,
                context={'line': lineno, 'text': line.strip()},
            ))
            continue

        address, bank = split_address(full_address, fixed_end)
        table.add(normalize_name(symbol), address, bank)

    logger.debug(f"Parsed {len(table)} code symbols")
    return table


def load_noi(path: Union[Path, str], fixed_end: int = FIXED_BANK_END) -> SymbolTable:
    """Read and parse a .noi file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Symbol file not found: {path}")
    return parse_noi(path.read_text(encoding='utf-8', errors='replace'), fixed_end)


def noi_path_for_rom(rom: Union[Path, str]) -> Path:
    """The linker writes game.noi next to game.gb / game.gbc."""
    rom = Path(rom)
    if rom.suffix.lower() in ('.gb', '.gbc'):
        return rom.with_suffix('.noi')
    return rom.with_name(rom.name + '.noi')
