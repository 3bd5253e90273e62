"""
DASH segment addressing for ManifestKit.

Expands SegmentTemplate, SegmentList and SegmentBase information of a
Representation into a list of Segment objects.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..models import Segment, SegmentMap
from ..utils import resolve_url

logger = logging.getLogger(__name__)

_re_template_identifier = re.compile(r"\$\$|\$(RepresentationID|Number|Bandwidth|Time)(?:%0(\d+)d)?\$")

# (t, d, r) from a SegmentTimeline S element; t may be missing
TimelineEntry = Tuple[Optional[int], int, int]


class ManifestParseError(ValueError):
    """Raised when a manifest can't be parsed."""


@dataclass
class SegmentContext:
    """Everything about a Representation needed to address its segments."""
    base_url: str
    representation_id: str = ''
    bandwidth: int = 0
    timeline: int = 0
    period_start: float = 0.0
    period_duration: Optional[float] = None
    dynamic: bool = False
    availability_start_time: Optional[float] = None  # seconds since epoch
    time_shift_buffer_depth: Optional[float] = None
    now: float = 0.0  # seconds since epoch, clock offset applied
    sidx_mapping: Optional[Dict[str, Any]] = None

    def elapsed(self) -> Optional[float]:
        """Seconds of this period that are available right now (live only)."""
        if not self.dynamic or self.availability_start_time is None:
            return None
        return self.now - self.availability_start_time - self.period_start


def format_template(template: str, values: Dict[str, Any]) -> str:
    """
    Fill in the identifiers of a SegmentTemplate URL.

    Supports $RepresentationID$, $Number$, $Bandwidth$ and $Time$, each with an
    optional %0<width>d format tag, and $$ for a literal dollar sign.
    Identifiers without a value are left in place.

    Example:
        >>> format_template("seg-$RepresentationID$-$Number%05d$.m4s",
        ...                 {"RepresentationID": "v1", "Number": 7})
        'seg-v1-00007.m4s'
    """
    def replace(match):
        identifier, width = match.group(1), match.group(2)
        if identifier is None:
            return '$'
        if values.get(identifier) is None:
            return match.group(0)
        value = str(values[identifier])
        if width:
            value = value.zfill(int(width))
        return value

    return _re_template_identifier.sub(replace, template)


def parse_range(value: Optional[str]) -> Optional[Dict[str, int]]:
    """Parse a DASH byte range ("<first>-<last>") to {"length", "offset"}."""
    if not value:
        return None
    first, _, last = value.partition('-')
    first, last = int(first), int(last)
    return {'length': last - first + 1, 'offset': first}


def _int(value, default=None):
    return int(value) if value not in (None, '') else default


def _positive(value: int, name: str) -> int:
    if value <= 0:
        raise ManifestParseError(f"{name} must be positive, got {value}")
    return value


def _make_map(ctx: SegmentContext, uri: Optional[str], byterange=None) -> SegmentMap:
    return SegmentMap(uri=uri, byterange=byterange, resolved_uri=resolve_url(ctx.base_url, uri))


def _expand_timeline(entries: List[TimelineEntry], timescale: int, start_number: int,
                     offset: int, ctx: SegmentContext):
    """Yield (number, time, duration) for every segment of a SegmentTimeline."""
    number = start_number
    time = 0
    for i, (t, d, r) in enumerate(entries):
        _positive(d, "SegmentTimeline S@d")
        if t is not None:
            time = t
        if r < 0:
            next_t = entries[i + 1][0] if i + 1 < len(entries) else None
            if next_t is not None:
                end = next_t
            elif ctx.period_duration is not None:
                end = offset + ctx.period_duration * timescale
            elif ctx.elapsed() is not None:
                end = offset + ctx.elapsed() * timescale
            else:
                end = time + d
            r = max(0, math.ceil((end - time) / d) - 1)
        for _ in range(r + 1):
            yield number, time, d
            time += d
            number += 1


def segments_from_template(template: Dict[str, str], timeline: Optional[List[TimelineEntry]],
                           ctx: SegmentContext) -> Tuple[List[Segment], Optional[SegmentMap]]:
    """
    Build segments for a SegmentTemplate.

    Args:
        template: Merged SegmentTemplate attributes
        timeline: SegmentTimeline entries, if the template has one
        ctx: Representation context

    Returns:
        Tuple of (segments, initialization map)
    """
    values = {'RepresentationID': ctx.representation_id, 'Bandwidth': ctx.bandwidth}
    timescale = _positive(_int(template.get('timescale'), 1), "SegmentTemplate@timescale")
    start_number = _int(template.get('startNumber'), 1)
    offset = _int(template.get('presentationTimeOffset'), 0)

    initialization = template.get('initialization')
    if isinstance(initialization, dict):
        initialization = initialization.get('sourceURL')

    init_map = None
    if initialization:
        init_map = _make_map(ctx, format_template(initialization, values))

    media = template.get('media')
    if not media:
        logger.warning(f"SegmentTemplate without media for representation {ctx.representation_id}")
        return [], init_map

    if timeline:
        addresses = list(_expand_timeline(timeline, timescale, start_number, offset, ctx))
    elif template.get('duration'):
        duration = _positive(_int(template['duration']), "SegmentTemplate@duration")
        addresses = _fixed_duration_addresses(duration, timescale, start_number, offset, ctx)
    else:
        addresses = [(start_number, offset, None)]

    segments = []
    for number, time, duration in addresses:
        uri = format_template(media, dict(values, Number=number, Time=time))
        seconds = duration / timescale if duration is not None else (ctx.period_duration or 0.0)
        segments.append(Segment(
            uri=uri,
            resolved_uri=resolve_url(ctx.base_url, uri),
            duration=seconds,
            number=number,
            timeline=ctx.timeline,
            map=init_map,
        ))
    return segments, init_map


def _fixed_duration_addresses(duration: int, timescale: int, start_number: int, offset: int,
                              ctx: SegmentContext):
    segment_seconds = duration / timescale
    elapsed = ctx.elapsed()

    if elapsed is not None:
        last = math.floor(elapsed / segment_seconds)
        first = 0
        if ctx.time_shift_buffer_depth:
            first = max(0, math.floor((elapsed - ctx.time_shift_buffer_depth) / segment_seconds))
        indexes = range(first, max(first, last))
    else:
        total = ctx.period_duration
        count = math.ceil(round(total / segment_seconds, 6)) if total else 1
        indexes = range(count)

    addresses = []
    for i in indexes:
        seg_duration = duration
        if elapsed is None and ctx.period_duration:
            remaining = ctx.period_duration * timescale - i * duration
            seg_duration = min(duration, remaining)
        addresses.append((start_number + i, offset + i * duration, seg_duration))
    return addresses


def segments_from_list(segment_list: Dict[str, Any], ctx: SegmentContext
                       ) -> Tuple[List[Segment], Optional[SegmentMap]]:
    """
    Build segments for a SegmentList.

    Args:
        segment_list: Merged SegmentList attributes plus 'segment_urls'
            (list of {media, mediaRange}) and optional 'initialization'
            ({sourceURL, range})
        ctx: Representation context
    """
    timescale = _positive(_int(segment_list.get('timescale'), 1), "SegmentList@timescale")
    duration = _int(segment_list.get('duration'))
    start_number = _int(segment_list.get('startNumber'), 1)

    init_map = None
    initialization = segment_list.get('initialization')
    if initialization:
        init_uri = initialization.get('sourceURL') or ctx.base_url
        init_map = _make_map(ctx, init_uri, parse_range(initialization.get('range')))

    segment_urls = segment_list.get('segment_urls') or []
    segments = []
    for i, segment_url in enumerate(segment_urls):
        uri = segment_url.get('media') or ctx.base_url
        if duration is not None:
            seconds = duration / timescale
        else:
            seconds = (ctx.period_duration or 0.0) / len(segment_urls)
        segments.append(Segment(
            uri=uri,
            resolved_uri=resolve_url(ctx.base_url, uri),
            duration=seconds,
            number=start_number + i,
            timeline=ctx.timeline,
            byterange=parse_range(segment_url.get('mediaRange')),
            map=init_map,
        ))
    return segments, init_map


def sidx_key(uri: str, byterange: Dict[str, int]) -> str:
    """Key of a segment index in sidx_mapping: "<uri>-<first>-<last>"."""
    first = byterange['offset']
    return f"{uri}-{first}-{first + byterange['length'] - 1}"


def segments_from_base(segment_base: Dict[str, Any], ctx: SegmentContext
                       ) -> Tuple[List[Segment], Optional[SegmentMap]]:
    """
    Build segments for a SegmentBase (single file addressed by byte ranges).

    When sidx_mapping has the segment index for this file, every referenced
    subsegment becomes a segment. Otherwise the whole file is one segment.
    """
    uri = ctx.base_url
    init_map = None
    initialization = segment_base.get('initialization')
    if initialization:
        init_uri = initialization.get('sourceURL') or uri
        init_map = _make_map(ctx, init_uri, parse_range(initialization.get('range')))

    index_range = parse_range(segment_base.get('indexRange'))
    sidx = None
    if index_range and ctx.sidx_mapping:
        entry = ctx.sidx_mapping.get(sidx_key(uri, index_range))
        sidx = entry.get('sidx') if entry else None

    if not sidx:
        segment = Segment(
            uri=uri,
            resolved_uri=uri,
            duration=ctx.period_duration or 0.0,
            number=0,
            timeline=ctx.timeline,
            map=init_map,
        )
        return [segment], init_map

    timescale = sidx.get('timescale') or 1
    offset = index_range['offset'] + index_range['length'] + (sidx.get('first_offset') or 0)
    segments = []
    for i, reference in enumerate(sidx.get('references', [])):
        size = reference['referenced_size']
        segments.append(Segment(
            uri=uri,
            resolved_uri=uri,
            duration=reference['subsegment_duration'] / timescale,
            number=i,
            timeline=ctx.timeline,
            byterange={'length': size, 'offset': offset},
            map=init_map,
        ))
        offset += size
    logger.debug(f"Built {len(segments)} segments from sidx of {uri}")
    return segments, init_map
