"""Exporters for gbvm-bench traces."""

from .speedscope import SpeedscopeExporter, load_speedscope, PLACEHOLDER

__all__ = ['SpeedscopeExporter', 'load_speedscope', 'PLACEHOLDER']
