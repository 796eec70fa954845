"""
Tests for Phase 8: Benchmark sessions.

CRITICAL TESTS:
1. test_frame_windows - Each frame is aggregated over its own time window
2. test_capture_all_records_markers - One screenshot and marker per frame
3. test_generated_run_is_balanced - Every open of a long run is closed
"""

import logging

import pytest

from gbvm_bench.config import BenchConfig
from gbvm_bench.core.errors import ErrorCode
from gbvm_bench.demo import generate_run
from gbvm_bench.hosts import Observation, ObservationListHost
from gbvm_bench.session import BenchmarkSession, capture_name
from gbvm_bench.symbols import SymbolTable, parse_noi
from gbvm_bench.trace import occurrences


def _frames(*frames):
    return [[Observation(*obs) for obs in frame] for frame in frames]


MAIN_HELPER_RUN = _frames(
    [(0x150, 0, 0), (0x200, 0, 10)],
    [(0x160, 0, 20), (0x161, 0, 30)],
)


class CapturingHost(ObservationListHost):
    """Host whose "screen" is a few bytes written to disk."""

    def capture(self, path):
        path.write_bytes(b'\x89PNG')
        return True


class ClosingHost(ObservationListHost):
    """Host that counts close() calls."""

    closed = 0

    def close(self):
        self.closed += 1
        super().close()


class TestSessionRun:
    """Test running frames and reporting."""

    def test_frame_windows(self, main_helper_table):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table)
        reports = session.run(frames=5, capture='none')

        assert session.frames_run == 2
        assert [(r.start, r.end) for r in reports] == [(0, 10), (10, 30)]
        assert [(e.symbol, e.duration) for e in reports[0].entries] == [('main', 10)]
        assert [(e.symbol, e.duration) for e in reports[1].entries] == [('main', 20), ('helper', 10)]

    def test_finish_closes_at_host_time(self, main_helper_table):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table)
        session.run(frames=2, capture='none')
        recorder = session.finish()

        assert [(e.type, recorder.frame_name(e.frame), e.at) for e in recorder.events] == [
            ('O', 'main', 0),
            ('O', 'helper', 10),
            ('C', 'helper', 20),
            ('C', 'main', 30),
        ]

    def test_finish_is_idempotent(self, main_helper_table):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table)
        session.run(capture='none')
        first = list(session.finish().events)
        assert session.finish().events == first

    def test_finish_closes_host(self, main_helper_table):
        host = ClosingHost(MAIN_HELPER_RUN)
        session = BenchmarkSession(host, main_helper_table)
        session.run(frames=1, capture='none')

        session.finish()
        session.finish()

        assert host.closed == 1
        assert session.recorder.end_value == 10

    def test_run_after_finish_raises(self, main_helper_table):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table)
        session.finish()
        with pytest.raises(RuntimeError):
            session.run()

    def test_frames_default_from_config(self, main_helper_table):
        config = BenchConfig.from_dict({'run': {'frames': 1, 'capture': 'none'}})
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table, config)
        session.run()
        assert session.frames_run == 1

    def test_report_settings_from_config(self, main_helper_table):
        config = BenchConfig.from_dict({
            'timing': {'cycles_per_frame': 20},
            'report': {'bar_width': 4, 'profile_name': 'Bench'},
        })
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table, config)
        reports = session.run(capture='none')

        assert reports[1].bar(20) == '|####|'
        assert session.recorder.name == 'Bench'

    def test_host_callback_wired(self, main_helper_table):
        host = ObservationListHost(MAIN_HELPER_RUN)
        session = BenchmarkSession(host, main_helper_table)
        assert host.on_instruction == session.tracker.observe

    def test_frame_report_logged(self, main_helper_table, caplog):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table)
        with caplog.at_level(logging.INFO, logger='gbvm_bench.session'):
            session.run(frames=1, capture='none')

        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith('- FRAME 0 REPORT') for m in messages)
        assert any(m.startswith('* main') for m in messages)

    def test_summary(self, main_helper_table):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table)
        session.run(capture='none')
        session.finish()
        summary = session.summary()

        assert summary['frames'] == 2
        assert summary['symbols'] == 2
        assert summary['events'] == 4
        assert summary['end_value'] == 30
        assert summary['tracker']['calls'] == 2


class TestMissingSymbols:
    """Test runs without symbol data."""

    def test_empty_table_warns_and_runs(self, caplog):
        with caplog.at_level(logging.WARNING, logger='gbvm_bench.session'):
            session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), SymbolTable())

        assert session.diagnostics[0].code == ErrorCode.E1001_MISSING_SYMBOL_DATA
        assert caplog.records

        session.run(capture='none')
        recorder = session.finish()
        assert recorder.events == []
        assert any(d.code == ErrorCode.E2001_UNRESOLVED_ADDRESS for d in session.diagnostics)

    def test_none_symbols(self):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), None)
        session.run(capture='none')
        assert session.finish().events == []

    def test_parse_diagnostics_carried(self):
        table = parse_noi("DEF _main 0x150\nDEF _bad zz\n")
        session = BenchmarkSession(ObservationListHost([]), table)
        assert session.diagnostics[0].code == ErrorCode.E1002_MALFORMED_SYMBOL_LINE


class TestCaptures:
    """Test screenshot capture modes."""

    def test_capture_name(self):
        assert capture_name(7) == 'frame_0007.png'

    def test_capture_all_records_markers(self, main_helper_table, tmp_path):
        session = BenchmarkSession(CapturingHost(MAIN_HELPER_RUN), main_helper_table, export_dir=tmp_path)
        session.run(capture='all')

        assert [(c.at, c.src) for c in session.recorder.captures] == [
            (0, 'captures/frame_0000.png'),
            (10, 'captures/frame_0001.png'),
        ]
        assert (tmp_path / 'captures' / 'frame_0001.png').exists()

    def test_capture_exit_single_image(self, main_helper_table, tmp_path):
        session = BenchmarkSession(CapturingHost(MAIN_HELPER_RUN), main_helper_table, export_dir=tmp_path)
        session.run(capture='exit')

        assert (tmp_path / 'final_frame.png').exists()
        assert not (tmp_path / 'captures').exists()
        assert session.recorder.captures == []

    def test_host_without_screen_records_nothing(self, main_helper_table, tmp_path):
        session = BenchmarkSession(ObservationListHost(MAIN_HELPER_RUN), main_helper_table, export_dir=tmp_path)
        session.run(capture='all')
        assert session.recorder.captures == []

    def test_capture_needs_export_dir(self, main_helper_table):
        session = BenchmarkSession(CapturingHost(MAIN_HELPER_RUN), main_helper_table)
        session.run(capture='all')
        assert session.recorder.captures == []


class TestGeneratedRun:
    """Test the full pipeline on a synthetic program."""

    @pytest.fixture
    def session(self):
        program, frames = generate_run(frames=2, seed=3, cycles_per_frame=5000)
        config = BenchConfig.from_dict({'timing': {'cycles_per_frame': 5000}})
        session = BenchmarkSession(
            ObservationListHost(frames),
            parse_noi(program.to_noi()),
            config,
        )
        session.run(capture='none')
        session.finish()
        return session

    def test_generated_run_is_balanced(self, session):
        recorder = session.recorder

        assert recorder.open_count > 0
        assert recorder.open_count == recorder.close_count
        assert len(occurrences(recorder.events)) == recorder.open_count
        assert session.tracker.underflows == 0

    def test_main_is_live_the_whole_run(self, session):
        report = session.frame_reports[-1]
        durations = {e.symbol: e.duration for e in report.entries}
        assert durations['_main'] == report.duration
        assert report.top.duration == report.duration

    def test_interrupt_handler_recognized(self, session):
        names = {session.recorder.frame_name(e.frame) for e in session.recorder.events}
        assert '_vm_run' in names
        assert 'INT_vbl' in session.recorder.frames

    def test_events_time_ordered(self, session):
        times = [e.at for e in session.recorder.events]
        assert times == sorted(times)
