"""
Error codes for gbvm-bench.

Structured error codes for machine-parseable diagnostics.

Format: E{category}{number}
- E1xxx: Symbol data errors
- E2xxx: Tracking errors
- E3xxx: Configuration errors
- E4xxx: I/O and export errors

None of the E1xxx/E2xxx codes abort a run. The tracker and region builder
collect them as diagnostics and keep going; an instruction that can't be
attributed simply contributes no stack information.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional


class ErrorCode(Enum):
    """Structured error codes."""

    # E1xxx: Symbol data errors
    E1001_MISSING_SYMBOL_DATA = "E1001"
    E1002_MALFORMED_SYMBOL_LINE = "E1002"

    # E2xxx: Tracking errors
    E2001_UNRESOLVED_ADDRESS = "E2001"
    E2002_STACK_UNDERFLOW = "E2002"
    E2003_MALFORMED_REGION = "E2003"

    # E3xxx: Configuration errors
    E3001_INVALID_CONFIG = "E3001"

    # E4xxx: I/O errors
    E4001_FILE_WRITE_FAILED = "E4001"
    E4002_INVALID_OBSERVATION_LOG = "E4002"


# Error code metadata
ERROR_METADATA = {
    ErrorCode.E1001_MISSING_SYMBOL_DATA: {
        'severity': 'warning',
        'message': 'No usable symbol table, trace will be empty',
        'recoverable': True,
    },
    ErrorCode.E1002_MALFORMED_SYMBOL_LINE: {
        'severity': 'warning',
        'message': 'Symbol line could not be parsed',
        'recoverable': True,
    },
    ErrorCode.E2001_UNRESOLVED_ADDRESS: {
        'severity': 'info',
        'message': 'Address matches no region (untracked time)',
        'recoverable': True,
    },
    ErrorCode.E2002_STACK_UNDERFLOW: {
        'severity': 'info',
        'message': 'Return detected with an empty call stack',
        'recoverable': True,
    },
    ErrorCode.E2003_MALFORMED_REGION: {
        'severity': 'warning',
        'message': 'Symbol lies outside its bank and was skipped',
        'recoverable': True,
    },
    ErrorCode.E3001_INVALID_CONFIG: {
        'severity': 'error',
        'message': 'Invalid configuration',
        'recoverable': False,
    },
    ErrorCode.E4001_FILE_WRITE_FAILED: {
        'severity': 'error',
        'message': 'Failed to write output file',
        'recoverable': True,
    },
    ErrorCode.E4002_INVALID_OBSERVATION_LOG: {
        'severity': 'error',
        'message': 'Observation log could not be read',
        'recoverable': False,
    },
}


@dataclass
class BenchError:
    """
    Structured error with context.

    Example:
        error = BenchError(
            code=ErrorCode.E2003_MALFORMED_REGION,
            context={'symbol': '_late', 'bank': 0, 'address': 0x4100},
        )
    """
    code: ErrorCode
    context: Optional[dict] = None

    @property
    def severity(self) -> str:
        return ERROR_METADATA.get(self.code, {}).get('severity', 'error')

    @property
    def message(self) -> str:
        base_msg = ERROR_METADATA.get(self.code, {}).get('message', 'Unknown error')
        if self.context:
            return f"{base_msg}: {self.context}"
        return base_msg

    @property
    def recoverable(self) -> bool:
        return ERROR_METADATA.get(self.code, {}).get('recoverable', False)

    def to_dict(self) -> dict:
        return {
            'code': self.code.value,
            'severity': self.severity,
            'message': self.message,
            'recoverable': self.recoverable,
            'context': self.context,
        }
