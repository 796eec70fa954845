"""
Symbol table: the flat (name, address, bank) list the region builder consumes.

Records are kept in insertion order and deduplicated by (bank, address).
The first record for a location wins, matching the order in which the
linker lists them in the debug file.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Tuple, Union

from ..core.errors import BenchError


ADDRESS_MASK = 0xFFFF


@dataclass(frozen=True)
class SymbolRecord:
    """
    One code symbol.

    Attributes:
        name: Normalized symbol name (segment prefixes/suffixes removed)
        address: 16-bit CPU address
        bank: ROM bank the code lives in (0 for the fixed bank)
    """
    name: str
    address: int
    bank: int

    def __post_init__(self):
        if not 0 <= self.address <= ADDRESS_MASK:
            raise ValueError(f"Address out of range for {self.name}: {self.address:#x}")
        if self.bank < 0:
            raise ValueError(f"Negative bank for {self.name}: {self.bank}")

    @property
    def key(self) -> Tuple[int, int]:
        return (self.bank, self.address)

    def __repr__(self) -> str:
        return f"SymbolRecord({self.name!r}, {self.bank:02X}:{self.address:04X})"


SymbolLike = Union[SymbolRecord, Mapping, Tuple[str, int, int]]


@dataclass
class SymbolTable:
    """
    Ordered, deduplicated symbol list.

    Usage:
        table = SymbolTable()
        table.add('main', 0x150, 0)
        table.add('helper', 0x200, 0)
        for record in table:
            ...
    """

    records: List[SymbolRecord] = field(default_factory=list)
    diagnostics: List[BenchError] = field(default_factory=list)
    _seen: Dict[Tuple[int, int], SymbolRecord] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        initial, self.records = self.records, []
        for record in initial:
            self.add_record(record)

    def add(self, name: str, address: int, bank: int) -> bool:
        """Add a symbol. Returns False if its (bank, address) is already taken."""
        return self.add_record(SymbolRecord(name=name, address=address, bank=bank))

    def add_record(self, record: SymbolRecord) -> bool:
        if record.key in self._seen:
            return False
        self._seen[record.key] = record
        self.records.append(record)
        return True

    @classmethod
    def from_records(cls, items: Iterable[SymbolLike]) -> 'SymbolTable':
        """
        Build a table from records, dicts or tuples.

        Dicts may use either ``name``/``symbol`` and ``address``/``addr``.
        """
        table = cls()
        for item in items:
            if isinstance(item, SymbolRecord):
                table.add_record(item)
            elif isinstance(item, Mapping):
                table.add(
                    item.get('name', item.get('symbol')),
                    item.get('address', item.get('addr')),
                    item.get('bank', 0),
                )
            else:
                name, address, bank = item
                table.add(name, address, bank)
        return table

    def names(self) -> List[str]:
        """Distinct symbol names in order of first appearance."""
        seen = {}
        for record in self.records:
            seen.setdefault(record.name, None)
        return list(seen)

    def longest_name(self) -> int:
        return max((len(r.name) for r in self.records), default=0)

    def __iter__(self) -> Iterator[SymbolRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)
