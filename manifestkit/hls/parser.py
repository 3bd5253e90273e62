"""
HLS parser for ManifestKit.

Wraps the m3u8 library's parser behind a push/end interface that supports
custom tag parsers and tag mappers, and converts its output to the
manifestkit.models structures.
"""

import logging
import re
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import m3u8

from ..models import (
    CustomTagMapper,
    CustomTagParser,
    Manifest,
    MediaGroupEntry,
    Playlist,
    PlaylistCollection,
    Segment,
    SegmentKey,
    SegmentMap,
)

logger = logging.getLogger(__name__)

MEDIA_GROUP_TYPES = ('AUDIO', 'VIDEO', 'CLOSED-CAPTIONS', 'SUBTITLES')


def _compile(expression):
    if isinstance(expression, str):
        return re.compile(expression)
    return expression


def _coerce_rule(rule: Union[Mapping[str, Any], Any], rule_class):
    if isinstance(rule, rule_class):
        return rule
    if isinstance(rule, Mapping):
        return rule_class(**rule)
    raise TypeError(f"Expected {rule_class.__name__} or mapping, got {type(rule).__name__}")


def _unquote(value):
    if isinstance(value, str) and len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_byterange(value: Optional[str], default_offset: int = 0) -> Optional[Dict[str, int]]:
    """
    Parse an HLS byterange ("<length>[@<offset>]").

    Args:
        value: Byterange string
        default_offset: Offset used when the string has none

    Returns:
        Dictionary with length and offset, or None for an empty value
    """
    if not value:
        return None
    length, _, offset = str(_unquote(value)).partition('@')
    return {
        'length': int(length),
        'offset': int(offset) if offset else default_offset,
    }


def parse_resolution(value) -> Optional[Dict[str, int]]:
    """Parse "<width>x<height>" (or a (width, height) tuple) to a dictionary."""
    if not value:
        return None
    if isinstance(value, (tuple, list)):
        width, height = value
    else:
        width, _, height = str(value).lower().partition('x')
    try:
        return {'width': int(width), 'height': int(height)}
    except ValueError:
        logger.warning(f"Ignoring invalid RESOLUTION: {value}")
        return None


def _yes(value) -> bool:
    return isinstance(value, str) and value.strip('"').upper() == 'YES'


class HlsParser:
    """
    Incremental front end for the m3u8 parser.

    Text is pushed in chunks and parsed on end(). Tag mappers see every
    complete line as it is pushed; custom tag parsers see every tag line while
    the m3u8 grammar runs.

    Example:
        >>> parser = HlsParser()
        >>> parser.add_parser(CustomTagParser(expression=r"^#TOTAL-DURATION",
        ...                                   custom_type="totalDuration",
        ...                                   data_parser=lambda l: float(l.split(":")[1])))
        >>> parser.push(text)
        >>> parser.end()
        >>> parser.manifest.custom["totalDuration"]
        57.9911
    """

    def __init__(self):
        """Initialize HLS parser."""
        self.custom_parsers: List[CustomTagParser] = []
        self.tag_mappers: List[CustomTagMapper] = []
        self.manifest: Optional[Manifest] = None
        self._buffer = ''
        self._lines: List[str] = []
        self._segment_custom: List[Tuple[int, str, Any]] = []
        self._ended = False

    def add_parser(self, rule) -> None:
        """Register a CustomTagParser (or a mapping with the same fields)."""
        rule = _coerce_rule(rule, CustomTagParser)
        self.custom_parsers.append(replace(rule, expression=_compile(rule.expression)))

    def add_tag_mapper(self, rule) -> None:
        """Register a CustomTagMapper (or a mapping with the same fields)."""
        rule = _coerce_rule(rule, CustomTagMapper)
        self.tag_mappers.append(replace(rule, expression=_compile(rule.expression)))

    def push(self, chunk: str) -> None:
        """
        Add manifest text.

        Args:
            chunk: Any part of the manifest; lines may span chunks

        Raises:
            ValueError: If end() was already called
        """
        if self._ended:
            raise ValueError("Cannot push to an HLS parser after end()")

        self._buffer += chunk
        *complete, self._buffer = re.split(r'\r?\n', self._buffer)
        for line in complete:
            self._add_line(line)

    def end(self) -> Manifest:
        """
        Parse everything pushed so far.

        Returns:
            The parsed (not yet normalized) Manifest, also stored on self.manifest

        Raises:
            ValueError: If end() was already called or the text isn't valid M3U8
        """
        if self._ended:
            raise ValueError("HLS parser already ended")
        self._ended = True

        if self._buffer:
            self._add_line(self._buffer)
            self._buffer = ''

        custom: Dict[str, Any] = {}
        try:
            data = m3u8.parse(
                '\n'.join(self._lines),
                custom_tags_parser=lambda line, lineno, data, state: self._parse_custom_tag(line, data, custom),
            )
        except m3u8.ParseError as e:
            raise ValueError(f"Invalid M3U8 manifest: {e}") from e

        self.manifest = self._build_manifest(data, custom)
        logger.info(
            f"Parsed HLS {'master' if self.manifest.is_master else 'media'} manifest: "
            f"{len(self.manifest.playlists or [])} playlists, {len(self.manifest.segments)} segments"
        )
        return self.manifest

    def _add_line(self, line: str) -> None:
        lines = [line]
        for mapper in self.tag_mappers:
            if not mapper.expression.search(line):
                continue
            mapped = mapper.map(line)
            if mapped is not None and mapped != line:
                lines.append(mapped)
        self._lines.extend(lines)

    def _parse_custom_tag(self, line: str, data: Dict[str, Any], custom: Dict[str, Any]) -> bool:
        for rule in self.custom_parsers:
            if not rule.expression.search(line):
                continue
            value = rule.data_parser(line) if rule.data_parser else line
            if rule.segment:
                # Applies to the segment whose URI comes next
                self._segment_custom.append((len(data['segments']), rule.custom_type, value))
            else:
                custom[rule.custom_type] = value
            logger.debug(f"Custom tag {rule.custom_type}: {value!r}")
            return True
        return False

    def _build_manifest(self, data: Dict[str, Any], custom: Dict[str, Any]) -> Manifest:
        manifest = Manifest(
            allow_cache=str(data.get('allow_cache', 'YES')).upper() != 'NO',
            version=data.get('version'),
            custom=custom,
        )

        if data.get('is_variant') or data.get('playlists'):
            manifest.playlists = PlaylistCollection(
                self._build_playlist(entry) for entry in data.get('playlists', [])
            )
            manifest.media_groups = self._build_media_groups(data.get('media', []))
            return manifest

        if data.get('targetduration') is not None:
            manifest.target_duration = int(data['targetduration'])
        manifest.media_sequence = int(data.get('media_sequence') or 0)
        manifest.discontinuity_sequence = int(data.get('discontinuity_sequence') or 0)
        manifest.end_list = bool(data.get('is_endlist'))
        if data.get('playlist_type'):
            manifest.playlist_type = str(data['playlist_type']).upper()

        timeline = 0
        offset = 0
        for i, entry in enumerate(data.get('segments', [])):
            if entry.get('discontinuity'):
                timeline += 1
                manifest.discontinuity_starts.append(i)
            segment = self._build_segment(entry, timeline, offset)
            if segment.byterange:
                offset = segment.byterange['offset'] + segment.byterange['length']
            manifest.segments.append(segment)

        for index, custom_type, value in self._segment_custom:
            if index < len(manifest.segments):
                manifest.segments[index].custom[custom_type] = value
            else:
                logger.warning(f"Custom tag {custom_type} is not followed by a segment")

        return manifest

    @staticmethod
    def _build_playlist(entry: Dict[str, Any]) -> Playlist:
        attributes = {}
        for name, value in (entry.get('stream_info') or {}).items():
            if value is None:
                continue
            key = name.upper().replace('_', '-')
            if key == 'RESOLUTION':
                value = parse_resolution(value)
                if value is None:
                    continue
            attributes[key] = _unquote(value)

        return Playlist(uri=entry.get('uri'), attributes=attributes or None)

    @staticmethod
    def _build_media_groups(media: List[Dict[str, Any]]):
        media_groups = {media_type: {} for media_type in MEDIA_GROUP_TYPES}

        for attrs in media:
            media_type = (attrs.get('type') or '').upper()
            if media_type not in media_groups:
                logger.warning(f"Ignoring EXT-X-MEDIA with unknown TYPE: {attrs.get('type')}")
                continue

            entry = MediaGroupEntry(default=_yes(attrs.get('default')))
            entry.autoselect = entry.default or _yes(attrs.get('autoselect'))
            entry.language = attrs.get('language')
            entry.uri = attrs.get('uri')
            entry.instream_id = attrs.get('instream_id')
            entry.characteristics = attrs.get('characteristics')
            if media_type == 'SUBTITLES':
                entry.forced = _yes(attrs.get('forced'))

            group = media_groups[media_type].setdefault(attrs.get('group_id'), {})
            group[attrs.get('name')] = entry

        return media_groups

    @staticmethod
    def _build_segment(entry: Dict[str, Any], timeline: int, offset: int) -> Segment:
        segment = Segment(
            uri=entry.get('uri'),
            duration=entry.get('duration') or 0.0,
            title=entry.get('title') or None,
            timeline=timeline,
            byterange=parse_byterange(entry.get('byterange'), default_offset=offset),
            discontinuity=bool(entry.get('discontinuity')),
            program_date_time=entry.get('program_date_time'),
        )

        key = entry.get('key')
        if key and (key.get('method') or 'NONE').upper() != 'NONE':
            segment.key = SegmentKey(method=key['method'], uri=key.get('uri'), iv=key.get('iv'))

        init_section = entry.get('init_section')
        if init_section:
            segment.map = SegmentMap(
                uri=init_section.get('uri'),
                byterange=parse_byterange(init_section.get('byterange')),
            )

        return segment
