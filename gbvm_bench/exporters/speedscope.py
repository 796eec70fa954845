"""
Speedscope exporter.

Writes the recorded trace as an evented speedscope profile that
https://www.speedscope.app can open directly, and optionally embeds it into
an HTML viewer template (any file containing the ``|SPEEDSCOPE_DATA|``
placeholder).

Example:
    exporter = SpeedscopeExporter(Path('out'))
    exporter.write(recorder)           # out/speedscope.json
    exporter.write_html(recorder, Path('viewer.html'))  # out/index.html
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from ..core.errors import BenchError, ErrorCode
from ..trace.recorder import TraceRecorder

logger = logging.getLogger(__name__)

PLACEHOLDER = '|SPEEDSCOPE_DATA|'


class SpeedscopeExporter:
    """Write speedscope.json (and index.html) into an export directory."""

    def __init__(self, export_dir: Union[Path, str], filename: str = 'speedscope.json'):
        self.export_dir = Path(export_dir)
        self.filename = filename

    @property
    def path(self) -> Path:
        return self.export_dir / self.filename

    def write(self, recorder: TraceRecorder, end_value: Optional[int] = None) -> Path:
        """Write the JSON profile. Returns the written path."""
        data = recorder.to_speedscope(end_value)
        self._write_text(self.path, json.dumps(data, indent=4))
        logger.info(f"Wrote {len(recorder.events)} events to {self.path}")
        return self.path

    def write_html(
        self,
        recorder: TraceRecorder,
        template: Union[Path, str],
        filename: str = 'index.html',
    ) -> Path:
        """Embed the profile into a viewer template."""
        template = Path(template)
        text = template.read_text(encoding='utf-8')
        if PLACEHOLDER not in text:
            raise ValueError(f"Template has no {PLACEHOLDER} placeholder: {template}")

        out = self.export_dir / filename
        self._write_text(out, text.replace(PLACEHOLDER, json.dumps(recorder.to_speedscope())))
        logger.info(f"Wrote viewer to {out}")
        return out

    def _write_text(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding='utf-8')
        except OSError as e:
            error = BenchError(
                code=ErrorCode.E4001_FILE_WRITE_FAILED,
                context={'path': str(path), 'error': str(e)},
            )
            logger.error(error.message)
            raise


def load_speedscope(path: Union[Path, str]) -> TraceRecorder:
    """Read a speedscope.json back into a TraceRecorder."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Profile not found: {path}")
    with open(path) as f:
        return TraceRecorder.from_speedscope(json.load(f))
