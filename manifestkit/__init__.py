"""
ManifestKit - Streaming Manifest Normalization Toolkit

Parses HLS (M3U8) and DASH (MPD) manifests into one consistent in-memory
shape, with relative URIs resolved and structural gaps of the parsers patched.

Features:
- Parse HLS master and media playlists, with custom tag parsers and mappers
- Parse DASH MPDs (SegmentTemplate, SegmentList, SegmentBase) into the same shape
- Resolve playlist, media group and segment URIs against the manifest URI
- Look up master playlists by index or by URI
- Load manifests over HTTP

Example usage:
    >>> from manifestkit import parse_manifest
    >>>
    >>> manifest = parse_manifest(
    ...     manifest_string=text,
    ...     src="http://example.com/master.m3u8"
    ... )
    >>> manifest.playlists[0] is manifest.playlists["low/index.m3u8"]
    True
    >>> manifest.playlists[0].resolved_uri
    'http://example.com/low/index.m3u8'
"""

import logging

__version__ = "0.1.0"
__author__ = "ManifestKit Contributors"
__license__ = "MIT"

# Add NullHandler to prevent "No handler found" warnings
# Users should configure logging in their application if they want to see logs
logging.getLogger(__name__).addHandler(logging.NullHandler())

# URL utilities
from .utils import resolve_url

# Normalization and parsing entry points
from .manifest import (
    resolve_segment_uris,
    for_each_media_group,
    resolve_media_group_uris,
    setup_media_playlist,
    setup_master_media_playlists,
    add_properties_to_parsed_manifest,
    parse_manifest,
    parse_master_xml,
)

# Grammar parsers
from .hls import HlsParser
from .dash import parse_mpd, ManifestParseError

# Source types
from .media_types import simple_type_from_source_type

# Loading
from .loader import load_manifest, load_from_config, detect_manifest_type

# Data models
from .models import (
    Manifest,
    Playlist,
    PlaylistCollection,
    MediaGroupEntry,
    Segment,
    SegmentKey,
    SegmentMap,
    CustomTagParser,
    CustomTagMapper,
    LoadConfig,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",

    # URL utilities
    "resolve_url",

    # Normalization
    "resolve_segment_uris",
    "for_each_media_group",
    "resolve_media_group_uris",
    "setup_media_playlist",
    "setup_master_media_playlists",
    "add_properties_to_parsed_manifest",

    # Parsing
    "parse_manifest",
    "parse_master_xml",
    "HlsParser",
    "parse_mpd",
    "ManifestParseError",
    "simple_type_from_source_type",

    # Loading
    "load_manifest",
    "load_from_config",
    "detect_manifest_type",

    # Models
    "Manifest",
    "Playlist",
    "PlaylistCollection",
    "MediaGroupEntry",
    "Segment",
    "SegmentKey",
    "SegmentMap",
    "CustomTagParser",
    "CustomTagMapper",
    "LoadConfig",
]
