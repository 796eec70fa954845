"""Call-stack reconstruction from PC/bank observations."""

from .frames import StackFrame, INTERRUPT_PREFIX
from .heuristics import Reentry, ReentryHeuristic, StackMembershipHeuristic
from .tracker import CallStackTracker

__all__ = [
    'StackFrame',
    'INTERRUPT_PREFIX',
    'Reentry',
    'ReentryHeuristic',
    'StackMembershipHeuristic',
    'CallStackTracker',
]
