"""
Data models for ManifestKit.

Defines the normalized manifest structures shared by the HLS and DASH parsers
and by the normalization helpers in manifestkit.manifest.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Union


@dataclass
class SegmentKey:
    """Encryption key referenced by a segment (#EXT-X-KEY)."""
    method: str = "NONE"
    uri: Optional[str] = None
    iv: Optional[str] = None
    resolved_uri: Optional[str] = None


@dataclass
class SegmentMap:
    """Initialization section of a segment (#EXT-X-MAP or DASH Initialization)."""
    uri: Optional[str] = None
    byterange: Optional[Dict[str, int]] = None  # {"length": ..., "offset": ...}
    resolved_uri: Optional[str] = None


@dataclass
class Segment:
    """A single media segment."""
    uri: Optional[str] = None
    resolved_uri: Optional[str] = None
    duration: float = 0.0
    title: Optional[str] = None
    timeline: int = 0
    number: Optional[int] = None
    byterange: Optional[Dict[str, int]] = None
    discontinuity: bool = False
    program_date_time: Optional[Any] = None
    key: Optional[SegmentKey] = None
    map: Optional[SegmentMap] = None
    custom: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Playlist:
    """
    One rendition's media playlist.

    Inside a master manifest a playlist usually only carries its uri and
    attributes until the media playlist itself is fetched. DASH playlists
    arrive with their segments already filled in.
    """
    uri: Optional[str] = None
    resolved_uri: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None
    id: Optional[int] = None
    timeline: int = 0
    segments: List[Segment] = field(default_factory=list)
    target_duration: Optional[float] = None
    media_sequence: int = 0
    discontinuity_sequence: int = 0
    discontinuity_starts: List[int] = field(default_factory=list)
    end_list: bool = False
    playlist_type: Optional[str] = None
    custom: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MediaGroupEntry:
    """An alternate rendition inside media_groups[type][group][label]."""
    default: bool = False
    autoselect: bool = False
    language: Optional[str] = None
    uri: Optional[str] = None
    resolved_uri: Optional[str] = None
    instream_id: Optional[str] = None
    characteristics: Optional[str] = None
    forced: Optional[bool] = None
    playlists: Optional[List[Playlist]] = None


MediaGroups = Dict[str, Dict[str, Dict[str, MediaGroupEntry]]]


class PlaylistCollection(list):
    """
    Ordered list of playlists that is also addressable by playlist URI.

    Integer indexes and slices behave like a normal list. String keys go
    through a URI alias map that points at the same Playlist objects:

        >>> playlists = PlaylistCollection([Playlist(uri="low.m3u8")])
        >>> playlists.register("low.m3u8", playlists[0])
        >>> playlists["low.m3u8"] is playlists[0]
        True
        >>> "low.m3u8" in playlists
        True

    The alias map never owns entries of its own. Replacing an indexed
    playlist moves the aliases that pointed at it; removing one (del, pop,
    remove, clear or slice assignment) drops them. Adding playlists (append,
    insert, extend, +=) never registers aliases, call register() for that.
    An alias may also point at a playlist that is not in the list (DASH media
    group playlists are registered that way).
    """

    def __init__(self, iterable=()):
        super().__init__(iterable)
        self._by_uri: Dict[str, Playlist] = {}

    def register(self, uri: str, playlist: Playlist) -> None:
        self._by_uri[uri] = playlist

    def has_uri(self, uri: str) -> bool:
        return uri in self._by_uri

    @property
    def by_uri(self) -> Mapping[str, Playlist]:
        """Read-only view of the URI aliases."""
        return MappingProxyType(self._by_uri)

    def get(self, key, default=None):
        try:
            return self[key]
        except (KeyError, IndexError):
            return default

    def _drop_aliases(self, removed) -> None:
        # a playlist listed twice keeps its aliases while one copy remains
        gone = [item for item in removed if not any(item is playlist for playlist in self)]
        for uri, playlist in list(self._by_uri.items()):
            if any(playlist is item for item in gone):
                del self._by_uri[uri]

    def __contains__(self, key):
        if isinstance(key, str):
            return key in self._by_uri
        return super().__contains__(key)

    def __getitem__(self, key):
        if isinstance(key, str):
            return self._by_uri[key]
        return super().__getitem__(key)

    def __setitem__(self, key, value):
        if isinstance(key, str):
            self.register(key, value)
            return
        if isinstance(key, slice):
            removed = super().__getitem__(key)
            super().__setitem__(key, value)
            self._drop_aliases(removed)
            return
        old = super().__getitem__(key)
        super().__setitem__(key, value)
        for uri, playlist in list(self._by_uri.items()):
            if playlist is old:
                self._by_uri[uri] = value

    def __delitem__(self, key):
        if isinstance(key, str):
            del self._by_uri[key]
            return
        removed = super().__getitem__(key)
        super().__delitem__(key)
        self._drop_aliases(removed if isinstance(key, slice) else [removed])

    def pop(self, index=-1):
        playlist = super().pop(index)
        self._drop_aliases([playlist])
        return playlist

    def remove(self, value):
        index = next((i for i, playlist in enumerate(self) if playlist is value), None)
        if index is None:
            index = self.index(value)
        del self[index]

    def clear(self):
        removed = list(self)
        super().clear()
        self._drop_aliases(removed)

    def __repr__(self):
        return f"PlaylistCollection({list.__repr__(self)}, uris={list(self._by_uri)})"


@dataclass
class Manifest(Playlist):
    """
    Root manifest object.

    A master manifest has ``playlists`` and ``media_groups`` set and no
    segments. A media manifest has segments and leaves both as None.
    """
    playlists: Optional[PlaylistCollection] = None
    media_groups: Optional[MediaGroups] = None
    allow_cache: bool = True
    version: Optional[int] = None
    duration: Optional[float] = None
    minimum_update_period: Optional[float] = None
    suggested_presentation_delay: Optional[float] = None

    @property
    def is_master(self) -> bool:
        return self.playlists is not None


@dataclass
class CustomTagParser:
    """Rule recognizing a non-standard tag and storing its value in ``custom``."""
    expression: Union[str, re.Pattern]
    custom_type: str
    data_parser: Optional[Callable[[str], Any]] = None
    segment: bool = False


@dataclass
class CustomTagMapper:
    """Rule rewriting a manifest line into an additional line before parsing."""
    expression: Union[str, re.Pattern]
    map: Callable[[str], Optional[str]]


@dataclass
class LoadConfig:
    """Configuration for fetching and parsing a manifest."""
    url: str
    timeout: int = 30
    verify_ssl: bool = True
    custom_tag_parsers: List[Any] = field(default_factory=list)
    custom_tag_mappers: List[Any] = field(default_factory=list)
    client_offset: float = 0  # milliseconds, server clock minus client clock
    sidx_mapping: Optional[Dict[str, Any]] = None
