"""
DASH package for ManifestKit.

Provides the MPD parser producing manifestkit.models structures.
"""

from .parser import ManifestParseError, parse_mpd
from .segments import format_template

__all__ = [
    'ManifestParseError',
    'parse_mpd',
    'format_template',
]
