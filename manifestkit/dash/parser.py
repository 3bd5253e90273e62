"""
MPD parser for ManifestKit.

Reads a DASH Media Presentation Description and produces a master Manifest:
video representations become playlists, audio and text representations become
media group entries, CEA-608 accessibility descriptors become closed caption
groups.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from isodate import ISO8601Error, parse_datetime, parse_duration
from lxml import etree

from ..models import Manifest, MediaGroupEntry, Playlist, PlaylistCollection
from ..utils import resolve_url
from .segments import (
    ManifestParseError,
    SegmentContext,
    segments_from_base,
    segments_from_list,
    segments_from_template,
)

logger = logging.getLogger(__name__)

CEA608_SCHEME = 'urn:scte:dash:cc:cea-608:2015'
TEXT_MIME_TYPES = ('text/vtt', 'application/ttml+xml')
TEXT_CODECS = ('wvtt', 'stpp')


def _local(element) -> str:
    return etree.QName(element).localname


def _children(element, name: str) -> List[Any]:
    if element is None:
        return []
    return [child for child in element if isinstance(child.tag, str) and _local(child) == name]


def _child(element, name: str):
    children = _children(element, name)
    return children[0] if children else None


def _seconds(value: Optional[str]) -> Optional[float]:
    """Convert an ISO 8601 duration to seconds."""
    if not value:
        return None
    try:
        duration = parse_duration(value)
    except ISO8601Error:
        logger.warning(f"Ignoring invalid duration: {value}")
        return None
    if not isinstance(duration, timedelta):
        duration = duration.totimedelta(start=datetime.now(timezone.utc))
    return duration.total_seconds()


def _timestamp(value: Optional[str]) -> Optional[float]:
    """Convert an ISO 8601 date-time to seconds since the epoch (UTC if no zone)."""
    if not value:
        return None
    try:
        dt = parse_datetime(value)
    except (ISO8601Error, ValueError):
        logger.warning(f"Ignoring invalid date-time: {value}")
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _frame_rate(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    numerator, _, denominator = value.partition('/')
    try:
        rate = float(numerator) / float(denominator or 1)
    except (ValueError, ZeroDivisionError):
        return None
    return round(rate, 3)


def _base_url(element, parent_url: str) -> str:
    base = _child(element, 'BaseURL')
    if base is None or not (base.text or '').strip():
        return parent_url
    return resolve_url(parent_url, base.text.strip()) or base.text.strip()


def _merged_attributes(elements, name: str) -> Optional[Dict[str, Any]]:
    """
    Merge an addressing element (SegmentTemplate, SegmentList, SegmentBase)
    over the hierarchy, the most specific level winning.
    """
    merged: Optional[Dict[str, Any]] = None
    for element in elements:
        node = _child(element, name)
        if node is None:
            continue
        merged = dict(merged or {})
        merged.update(node.attrib)

        timeline = _child(node, 'SegmentTimeline')
        if timeline is not None:
            merged['timeline'] = [
                (int(s.get('t')) if s.get('t') is not None else None, int(s.get('d')), int(s.get('r', 0)))
                for s in _children(timeline, 'S')
            ]

        initialization = _child(node, 'Initialization')
        if initialization is not None:
            merged['initialization'] = dict(initialization.attrib)

        segment_urls = _children(node, 'SegmentURL')
        if segment_urls:
            merged['segment_urls'] = [dict(url.attrib) for url in segment_urls]
    return merged


def _content_kind(attrs: Dict[str, Any]) -> Optional[str]:
    content_type = (attrs.get('contentType') or '').lower()
    mime_type = (attrs.get('mimeType') or '').lower()
    codecs = (attrs.get('codecs') or '').lower()

    if content_type in ('video', 'audio', 'text'):
        return content_type
    if mime_type in TEXT_MIME_TYPES or codecs.startswith(TEXT_CODECS):
        return 'text'
    if mime_type.startswith('video/'):
        return 'video'
    if mime_type.startswith('audio/'):
        return 'audio'
    if mime_type.startswith('text/'):
        return 'text'
    return None


def _caption_services(adaptation_set) -> List[Dict[str, str]]:
    """Parse CEA-608 accessibility values ("CC1=eng;CC3=swe" or "eng;swe")."""
    services = []
    for accessibility in _children(adaptation_set, 'Accessibility'):
        if accessibility.get('schemeIdUri') != CEA608_SCHEME:
            continue
        for i, service in enumerate(filter(None, (accessibility.get('value') or '').split(';'))):
            channel, sep, language = service.partition('=')
            if not sep:
                channel, language = f"CC{i + 1}", service
            services.append({'channel': channel, 'language': language})
    return services


class _MpdReader:
    """Walks an MPD tree once, collecting playlists and media groups."""

    def __init__(self, root, manifest_uri: str, client_offset: float, sidx_mapping):
        self.root = root
        self.manifest_uri = manifest_uri or ''
        self.sidx_mapping = sidx_mapping
        self.now = time.time() + (client_offset or 0) / 1000.0

        self.dynamic = root.get('type') == 'dynamic'
        self.duration = _seconds(root.get('mediaPresentationDuration'))
        self.availability_start_time = _timestamp(root.get('availabilityStartTime'))
        self.time_shift_buffer_depth = _seconds(root.get('timeShiftBufferDepth'))

        self.video: List[Playlist] = []
        self.audio: Dict[str, Dict[str, Any]] = {}
        self.text: Dict[str, Dict[str, Any]] = {}
        self.captions: Dict[str, MediaGroupEntry] = {}
        self._by_representation: Dict[tuple, Playlist] = {}

    def read(self) -> Manifest:
        base_url = _base_url(self.root, self.manifest_uri)
        periods = _children(self.root, 'Period')
        if not periods:
            raise ManifestParseError("MPD has no Period")

        start = 0.0
        for index, period in enumerate(periods):
            period_start = _seconds(period.get('start'))
            if period_start is not None:
                start = period_start
            duration = _seconds(period.get('duration'))
            next_start = _seconds(periods[index + 1].get('start')) if index + 1 < len(periods) else None
            if duration is None and next_start is not None:
                duration = next_start - start
            if duration is None and self.duration is not None:
                duration = self.duration - start
            self._read_period(period, index, start, duration, _base_url(period, base_url))
            if duration is not None:
                start += duration

        return self._build_manifest()

    def _read_period(self, period, timeline, start, duration, base_url):
        for adaptation_set in _children(period, 'AdaptationSet'):
            set_url = _base_url(adaptation_set, base_url)
            for service in _caption_services(adaptation_set):
                self.captions.setdefault(service['language'], MediaGroupEntry(
                    language=service['language'],
                    instream_id=service['channel'],
                ))

            for representation in _children(adaptation_set, 'Representation'):
                attrs = dict(adaptation_set.attrib)
                attrs.update(representation.attrib)
                kind = _content_kind(attrs)
                if kind is None:
                    logger.debug(f"Skipping representation {attrs.get('id')}: unknown content type")
                    continue

                ctx = SegmentContext(
                    base_url=_base_url(representation, set_url),
                    representation_id=attrs.get('id', ''),
                    bandwidth=int(attrs.get('bandwidth') or 0),
                    timeline=timeline,
                    period_start=start,
                    period_duration=duration,
                    dynamic=self.dynamic,
                    availability_start_time=self.availability_start_time,
                    time_shift_buffer_depth=self.time_shift_buffer_depth,
                    now=self.now,
                    sidx_mapping=self.sidx_mapping,
                )
                hierarchy = (period, adaptation_set, representation)
                playlist = self._playlist(kind, attrs, ctx, hierarchy)
                self._add_playlist(kind, attrs, adaptation_set, playlist)

    def _playlist(self, kind, attrs, ctx, hierarchy) -> Playlist:
        template = _merged_attributes(hierarchy, 'SegmentTemplate')
        segment_list = _merged_attributes(hierarchy, 'SegmentList')
        segment_base = _merged_attributes(hierarchy, 'SegmentBase')

        if template is not None:
            segments, _ = segments_from_template(template, template.get('timeline'), ctx)
        elif segment_list is not None:
            segments, _ = segments_from_list(segment_list, ctx)
        else:
            segments, _ = segments_from_base(segment_base or {}, ctx)

        attributes: Dict[str, Any] = {
            'NAME': ctx.representation_id,
            'BANDWIDTH': ctx.bandwidth,
        }
        if attrs.get('codecs'):
            attributes['CODECS'] = attrs['codecs']
        if kind == 'video':
            if attrs.get('width') and attrs.get('height'):
                attributes['RESOLUTION'] = {'width': int(attrs['width']), 'height': int(attrs['height'])}
            frame_rate = _frame_rate(attrs.get('frameRate'))
            if frame_rate:
                attributes['FRAME-RATE'] = frame_rate

        return Playlist(
            attributes=attributes,
            timeline=ctx.timeline,
            segments=segments,
            target_duration=max((segment.duration for segment in segments), default=None),
            media_sequence=segments[0].number if segments and segments[0].number is not None else 0,
            end_list=not self.dynamic,
        )

    def _add_playlist(self, kind, attrs, adaptation_set, playlist: Playlist) -> None:
        key = (kind, playlist.attributes['NAME'])
        existing = self._by_representation.get(key) if playlist.attributes['NAME'] else None
        if existing is not None:
            # Same representation in a later period
            if playlist.segments:
                playlist.segments[0].discontinuity = True
                existing.discontinuity_starts.append(len(existing.segments))
                existing.segments.extend(playlist.segments)
                existing.target_duration = max(existing.target_duration or 0, playlist.target_duration or 0)
            return
        self._by_representation[key] = playlist

        if kind == 'video':
            self.video.append(playlist)
            return

        label_element = _child(adaptation_set, 'Label')
        label = attrs.get('label') or (label_element.text if label_element is not None else None)
        roles = [role.get('value') for role in _children(adaptation_set, 'Role')]
        groups = self.audio if kind == 'audio' else self.text
        label = label or attrs.get('lang') or ('main' if kind == 'audio' else 'text')

        group = groups.setdefault(label, {'attrs': attrs, 'roles': roles, 'playlists': []})
        group['playlists'].append(playlist)

    def _build_manifest(self) -> Manifest:
        media_groups = {'AUDIO': {}, 'VIDEO': {}, 'CLOSED-CAPTIONS': {}, 'SUBTITLES': {}}
        playlists = list(self.video)

        if not playlists and self.audio:
            # Audio only presentation: audio renditions are the variants
            for group in self.audio.values():
                playlists.extend(group['playlists'])
        elif self.audio:
            media_groups['AUDIO']['audio'] = self._group_entries(self.audio, default_first=True)

        if self.text:
            media_groups['SUBTITLES']['subs'] = self._group_entries(self.text, default_first=False)
        if self.captions:
            media_groups['CLOSED-CAPTIONS']['cc'] = dict(self.captions)

        for playlist in playlists:
            if media_groups['AUDIO']:
                playlist.attributes['AUDIO'] = 'audio'
            if media_groups['SUBTITLES']:
                playlist.attributes['SUBTITLES'] = 'subs'
            if media_groups['CLOSED-CAPTIONS']:
                playlist.attributes['CLOSED-CAPTIONS'] = 'cc'

        manifest = Manifest(
            uri=self.manifest_uri,
            playlists=PlaylistCollection(playlists),
            media_groups=media_groups,
            end_list=not self.dynamic,
            duration=self.duration,
            minimum_update_period=_seconds(self.root.get('minimumUpdatePeriod')),
            suggested_presentation_delay=_seconds(self.root.get('suggestedPresentationDelay')),
        )
        logger.info(
            f"Parsed MPD: {len(playlists)} playlists, {len(self.audio)} audio, "
            f"{len(self.text)} subtitle, {len(self.captions)} caption renditions"
        )
        return manifest

    @staticmethod
    def _group_entries(groups, default_first: bool) -> Dict[str, MediaGroupEntry]:
        entries = {}
        has_main = any('main' in group['roles'] for group in groups.values())
        for i, (label, group) in enumerate(groups.items()):
            if has_main:
                default = 'main' in group['roles']
            else:
                default = default_first and i == 0
            entries[label] = MediaGroupEntry(
                default=default,
                autoselect=default_first,
                language=group['attrs'].get('lang'),
                playlists=group['playlists'],
            )
        return entries


def parse_mpd(
    manifest_xml: str,
    manifest_uri: str = '',
    client_offset: float = 0,
    sidx_mapping: Optional[Dict[str, Any]] = None,
) -> Manifest:
    """
    Parse an MPD document into a master Manifest.

    Segment URIs are resolved against the BaseURL chain and manifest_uri.
    The returned manifest is not normalized; see
    manifestkit.manifest.parse_master_xml.

    Args:
        manifest_xml: MPD document
        manifest_uri: URL of the MPD
        client_offset: Server clock minus client clock, in milliseconds
            (only used for live presentations)
        sidx_mapping: Segment index data keyed by "<uri>-<first>-<last>"

    Returns:
        Master Manifest

    Raises:
        ManifestParseError: If the document isn't a valid MPD
    """
    if isinstance(manifest_xml, str):
        manifest_xml = manifest_xml.encode('utf-8')

    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    try:
        root = etree.fromstring(manifest_xml, parser=parser)
    except etree.XMLSyntaxError as e:
        raise ManifestParseError(f"Invalid MPD: {e}") from e

    if root is None or _local(root) != 'MPD':
        raise ManifestParseError("Document root is not an MPD element")

    return _MpdReader(root, manifest_uri, client_offset, sidx_mapping).read()
