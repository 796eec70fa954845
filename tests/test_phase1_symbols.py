"""
Tests for Phase 1: Symbol tables and .noi parsing.

CRITICAL TESTS:
1. test_dedup_first_wins - One record per (bank, address)
2. test_banked_address_split - Bank comes from bits 16-23 only above 0x4000
3. test_excluded_symbols - Registers and bank markers never become regions
"""

import pytest

from gbvm_bench.core.errors import ErrorCode
from gbvm_bench.symbols import (
    SymbolRecord,
    SymbolTable,
    parse_noi,
    load_noi,
    noi_path_for_rom,
    normalize_name,
    split_address,
)


class TestSymbolRecord:
    """Test symbol record validation."""

    def test_valid_record(self):
        record = SymbolRecord('main', 0x150, 0)
        assert record.key == (0, 0x150)

    def test_address_out_of_range(self):
        with pytest.raises(ValueError):
            SymbolRecord('bad', 0x10000, 0)

    def test_negative_bank(self):
        with pytest.raises(ValueError):
            SymbolRecord('bad', 0x4000, -1)


class TestSymbolTable:
    """Test table ordering and deduplication."""

    def test_dedup_first_wins(self):
        """Second symbol at the same (bank, address) is dropped."""
        table = SymbolTable()
        assert table.add('first', 0x4000, 2) is True
        assert table.add('alias', 0x4000, 2) is False

        assert len(table) == 1
        assert table.records[0].name == 'first'

    def test_same_address_different_bank(self):
        """Same CPU address in two banks is two symbols."""
        table = SymbolTable()
        table.add('a', 0x4000, 1)
        table.add('b', 0x4000, 2)
        assert len(table) == 2

    def test_names_first_appearance(self):
        """Names are distinct, in order of first appearance."""
        table = SymbolTable.from_records([
            ('init', 0x150, 0),
            ('step', 0x4000, 1),
            ('init', 0x4000, 2),
            ('draw', 0x200, 0),
        ])
        assert table.names() == ['init', 'step', 'draw']

    def test_from_records_accepts_dicts(self):
        """Both name/address and symbol/addr spellings are accepted."""
        table = SymbolTable.from_records([
            {'name': 'main', 'address': 0x150, 'bank': 0},
            {'symbol': 'helper', 'addr': 0x200, 'bank': 0},
        ])
        assert [r.name for r in table] == ['main', 'helper']

    def test_constructor_dedups(self):
        table = SymbolTable(records=[
            SymbolRecord('a', 0x150, 0),
            SymbolRecord('b', 0x150, 0),
        ])
        assert [r.name for r in table] == ['a']

    def test_empty_table_is_falsy(self):
        assert not SymbolTable()
        assert SymbolTable().longest_name() == 0


class TestNameNormalization:
    """Test segment prefix/suffix stripping."""

    def test_plain_name_unchanged(self):
        assert normalize_name('_main') == '_main'

    def test_segment_prefix_and_suffix(self):
        assert normalize_name('F_engine$_script_runner$0$0') == '_script_runner'

    def test_suffix_only(self):
        assert normalize_name('_vm_call$12') == '_vm_call'


class TestAddressSplit:
    """Test 24-bit linker address handling."""

    def test_fixed_area_is_bank_zero(self):
        """Bank bits are ignored below 0x4000."""
        assert split_address(0x050150) == (0x150, 0)

    def test_banked_address_split(self):
        assert split_address(0x24100) == (0x4100, 2)
        assert split_address(0x1F7FFF) == (0x7FFF, 0x1F)


class TestParseNoi:
    """Test .noi parsing and filtering."""

    def test_parse_sample(self, sample_noi_text):
        table = parse_noi(sample_noi_text)
        names = [r.name for r in table]

        assert names == [
            '_main',
            '_helper',
            '_script_runner',
            '_vm_math',
            '_actor_data',
            '.remove_LCD_ISR',
        ]

    def test_banked_symbols(self, sample_noi_text):
        table = parse_noi(sample_noi_text)
        by_name = {r.name: r for r in table}

        assert by_name['_script_runner'].bank == 2
        assert by_name['_script_runner'].address == 0x4000
        assert by_name['_vm_math'].address == 0x4100
        assert by_name['_main'].bank == 0

    def test_excluded_symbols(self, sample_noi_text):
        """Register, bank-marker and non-code symbols are filtered."""
        names = {r.name for r in parse_noi(sample_noi_text)}

        assert '_rROMB0' not in names
        assert '___bank_engine' not in names
        assert 'b_junk' not in names
        assert 'INT_vbl' not in names

    def test_duplicate_location_first_wins(self):
        text = "DEF _a 0x150\nDEF _b 0x150\n"
        table = parse_noi(text)
        assert [r.name for r in table] == ['_a']

    def test_malformed_line_is_diagnostic(self):
        """A bad address doesn't abort the parse."""
        text = "DEF _ok 0x150\nDEF _broken zzz\nDEF _short\nDEF _next 0x200\n"
        table = parse_noi(text)

        assert [r.name for r in table] == ['_ok', '_next']
        assert len(table.diagnostics) == 2
        assert all(d.code == ErrorCode.E1002_MALFORMED_SYMBOL_LINE for d in table.diagnostics)

    def test_empty_text(self):
        assert len(parse_noi("")) == 0

    def test_load_noi(self, sample_noi_file):
        assert len(load_noi(sample_noi_file)) == 6

    def test_load_noi_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_noi(tmp_path / "missing.noi")

    def test_noi_path_for_rom(self, tmp_path):
        assert noi_path_for_rom(tmp_path / "game.gbc") == tmp_path / "game.noi"
        assert noi_path_for_rom(tmp_path / "game.GB") == tmp_path / "game.noi"
