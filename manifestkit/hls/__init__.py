"""
HLS package for ManifestKit.

Provides the M3U8 parser front end with custom tag support.
"""

from .parser import HlsParser, parse_byterange, parse_resolution

__all__ = [
    'HlsParser',
    'parse_byterange',
    'parse_resolution',
]
