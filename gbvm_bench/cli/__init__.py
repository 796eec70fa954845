"""Command-line interface for gbvm-bench."""
