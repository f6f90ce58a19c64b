"""Command-line interface for inspecting the resolved configuration.

The parser is a thin wrapper; ``resolve_for_display`` is the real
implementation and can be called without going through argv.
"""

from azconfig.cli.main import resolve_for_display

__all__ = ['resolve_for_display']
