"""
Manifest normalization for ManifestKit.

Turns the output of the HLS and DASH parsers into one consistent shape:
resolved URIs next to every uri, numeric playlist ids, an attributes mapping on
every playlist, and URI lookups on the playlists of a master manifest.
"""

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from .dash import parse_mpd
from .hls import HlsParser
from .models import Manifest, MediaGroupEntry, Playlist, PlaylistCollection, Segment
from .utils import resolve_url

logger = logging.getLogger(__name__)

# Media types whose groups can reference their own playlists. VIDEO groups are
# not walked and CLOSED-CAPTIONS never carry URIs.
GROUPED_MEDIA_TYPES = ('AUDIO', 'SUBTITLES')

MediaGroupCallback = Callable[[MediaGroupEntry, str, str, str], None]


def resolve_segment_uris(segment: Segment, base_uri: Optional[str]) -> None:
    """
    Add resolved_uri alongside every uri of a segment (segment, key and map).

    Values that are already set are left alone.

    Args:
        segment: Segment to update in place
        base_uri: URI relative segment URIs are based on
    """
    if not segment.resolved_uri:
        segment.resolved_uri = resolve_url(base_uri, segment.uri)
    if segment.key and not segment.key.resolved_uri:
        segment.key.resolved_uri = resolve_url(base_uri, segment.key.uri)
    if segment.map and not segment.map.resolved_uri:
        segment.map.resolved_uri = resolve_url(base_uri, segment.map.uri)


def for_each_media_group(master: Manifest, callback: MediaGroupCallback) -> None:
    """
    Call callback(entry, media_type, group_key, label_key) for every AUDIO and
    SUBTITLES media group entry of a master manifest.

    Groups and labels are visited in declaration order.
    """
    media_groups = master.media_groups or {}

    for media_type in GROUPED_MEDIA_TYPES:
        for group_key, group in (media_groups.get(media_type) or {}).items():
            for label_key, properties in group.items():
                callback(properties, media_type, group_key, label_key)


def resolve_media_group_uris(master: Manifest) -> None:
    """Add resolved_uri alongside uri in every media group entry that has one."""
    def resolve(properties, *_keys):
        if properties.uri:
            properties.resolved_uri = resolve_url(master.uri, properties.uri)

    for_each_media_group(master, resolve)


def setup_media_playlist(playlist: Playlist, master_uri: Optional[str] = None, index: int = 0) -> None:
    """
    Add the properties every media playlist is expected to have.

    The HLS parser doesn't attach attributes to standalone media playlists,
    and a badly formed master may omit them too, so an empty mapping is added
    when missing. Existing attributes are never replaced.

    Standalone media playlists are resolved when their response arrives (to
    follow redirects), so resolved_uri is only set for playlists that belong
    to a master.

    Args:
        playlist: Playlist (or media Manifest) to update in place
        master_uri: URI of the containing master manifest, if any
        index: Position of the playlist in the master's playlists (default: 0)
    """
    if master_uri:
        playlist.resolved_uri = resolve_url(master_uri, playlist.uri)
    playlist.id = index

    if playlist.attributes is None:
        playlist.attributes = {}


def setup_master_media_playlists(playlists: Sequence[Playlist], master_uri: Optional[str] = None) -> None:
    """
    Normalize the media playlists of a master manifest and set up URI lookups.

    Every playlist becomes reachable by its index and by its uri. Playlists
    missing a STREAM-INF attribute list are reported with a warning; playback
    can go on without bandwidth information.

    Args:
        playlists: The master manifest's playlists
        master_uri: URI of the master manifest
    """
    for i in reversed(range(len(playlists))):
        playlist = playlists[i]

        if playlist.uri is not None and isinstance(playlists, PlaylistCollection):
            playlists.register(playlist.uri, playlist)

        if playlist.attributes is None:
            logger.warning('Invalid playlist STREAM-INF detected. Missing BANDWIDTH attribute.')

        setup_media_playlist(playlist, master_uri=master_uri, index=i)


def add_properties_to_parsed_manifest(manifest: Manifest, src_uri: Optional[str] = None) -> Manifest:
    """
    Add properties a parser may have left out of a manifest.

    Master manifests get their media group and playlist URIs resolved and
    their playlists normalized; a media manifest is normalized as a playlist
    of its own.

    Args:
        manifest: Parsed manifest, updated in place
        src_uri: URI the manifest was loaded from

    Returns:
        The same manifest
    """
    if src_uri:
        manifest.uri = src_uri

    if manifest.playlists is not None:
        resolve_media_group_uris(manifest)
        setup_master_media_playlists(manifest.playlists, master_uri=manifest.uri)
    else:
        setup_media_playlist(manifest)

    return manifest


def parse_manifest(
    manifest_string: str,
    custom_tag_parsers: Iterable[Any] = (),
    custom_tag_mappers: Iterable[Any] = (),
    src: Optional[str] = None,
) -> Manifest:
    """
    Parse an HLS manifest string and normalize the result.

    Gives callers the same manifest object the loader would produce, which is
    handy when a manifest should be inspected or changed before use.

    Args:
        manifest_string: M3U8 text
        custom_tag_parsers: CustomTagParser rules (or mappings with the same fields)
        custom_tag_mappers: CustomTagMapper rules (or mappings with the same fields)
        src: URI of the manifest

    Returns:
        Normalized Manifest

    Example:
        >>> manifest = parse_manifest(text, src="http://example.com/master.m3u8")
        >>> manifest.playlists["low.m3u8"].resolved_uri
        'http://example.com/low.m3u8'
    """
    parser = HlsParser()

    for custom_parser in custom_tag_parsers:
        parser.add_parser(custom_parser)
    for mapper in custom_tag_mappers:
        parser.add_tag_mapper(mapper)

    parser.push(manifest_string)
    parser.end()

    manifest = parser.manifest
    add_properties_to_parsed_manifest(manifest, src_uri=src)

    return manifest


def parse_master_xml(
    master_xml: str,
    src_url: str,
    client_offset: float = 0,
    sidx_mapping: Optional[Dict[str, Any]] = None,
) -> Manifest:
    """
    Parse a DASH MPD and set up placeholder URIs for its playlists.

    DASH renditions have no URI of their own, but playlists are looked up by
    URI everywhere else, so each one gets a placeholder:
    ``placeholder-uri-{index}`` for the playlists and
    ``placeholder-uri-{type}-{group}-{label}`` for the first playlist of each
    media group entry.

    Args:
        master_xml: MPD document
        src_url: URL of the MPD
        client_offset: Server clock minus client clock, in milliseconds
        sidx_mapping: Segment index data for SegmentBase representations

    Returns:
        Normalized master Manifest
    """
    master = parse_mpd(
        master_xml,
        manifest_uri=src_url,
        client_offset=client_offset,
        sidx_mapping=sidx_mapping,
    )
    master.uri = src_url

    for i, playlist in enumerate(master.playlists):
        phony_uri = f"placeholder-uri-{i}"
        playlist.uri = phony_uri
        master.playlists.register(phony_uri, playlist)

    def add_group_placeholder(properties, media_type, group_key, label_key):
        if properties.playlists:
            phony_uri = f"placeholder-uri-{media_type}-{group_key}-{label_key}"
            properties.playlists[0].uri = phony_uri
            master.playlists.register(phony_uri, properties.playlists[0])

    for_each_media_group(master, add_group_placeholder)

    setup_master_media_playlists(master.playlists, master_uri=master.uri)
    resolve_media_group_uris(master)

    logger.debug(f"Parsed MPD {src_url}: {len(master.playlists)} playlists")
    return master
