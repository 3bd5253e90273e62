from unittest.mock import Mock

import pytest
import requests

from manifestkit.loader import detect_manifest_type, load_from_config, load_manifest
from manifestkit.models import CustomTagParser, LoadConfig

MEDIA = """#EXTM3U
#EXT-X-TARGETDURATION:6
#EXT-X-MAP:URI="init.mp4"
#EXTINF:6,
seg-1.m4s
#EXTINF:6,
https://other.example.com/seg-2.m4s
#X-TOTAL:12
"""

MASTER = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=800000
low/index.m3u8
"""

MPD = """<?xml version="1.0"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" type="static" mediaPresentationDuration="PT4S">
  <Period>
    <AdaptationSet mimeType="video/mp4">
      <SegmentTemplate media="$Number$.m4s" duration="2"/>
      <Representation id="v" bandwidth="1000"/>
    </AdaptationSet>
  </Period>
</MPD>
"""


def _session(text, url, content_type=None):
    response = Mock()
    response.text = text
    response.url = url
    response.headers = {"Content-Type": content_type} if content_type else {}
    session = Mock()
    session.get.return_value = response
    return session


def test_load_media_playlist_resolves_against_final_url():
    session = _session(MEDIA, "https://cdn.example.com/live/index.m3u8", "application/vnd.apple.mpegurl")

    manifest = load_manifest("https://example.com/live.m3u8", session=session)

    session.get.assert_called_once_with("https://example.com/live.m3u8", timeout=30, verify=True)
    assert manifest.uri == "https://cdn.example.com/live/index.m3u8"
    assert manifest.resolved_uri == "https://cdn.example.com/live/index.m3u8"
    assert manifest.id == 0
    assert [segment.resolved_uri for segment in manifest.segments] == [
        "https://cdn.example.com/live/seg-1.m4s",
        "https://other.example.com/seg-2.m4s",
    ]
    assert manifest.segments[0].map.resolved_uri == "https://cdn.example.com/live/init.mp4"


def test_load_master_playlist():
    session = _session(MASTER, "https://example.com/master.m3u8", "application/x-mpegURL; charset=utf-8")

    manifest = load_manifest("https://example.com/master.m3u8", session=session)

    assert manifest.is_master
    assert manifest.resolved_uri is None
    assert manifest.playlists["low/index.m3u8"].resolved_uri == "https://example.com/low/index.m3u8"


def test_load_passes_custom_tag_parsers():
    session = _session(MEDIA, "https://example.com/index.m3u8", "application/vnd.apple.mpegurl")

    manifest = load_manifest(
        "https://example.com/index.m3u8",
        session=session,
        custom_tag_parsers=[CustomTagParser(expression=r"^#X-TOTAL", custom_type="total",
                                            data_parser=lambda line: int(line.split(":")[1]))],
    )

    assert manifest.custom == {"total": 12}


def test_load_dash_detected_from_content():
    session = _session(MPD, "https://example.com/stream.mpd", "text/plain")

    manifest = load_manifest("https://example.com/stream.mpd", session=session)

    assert manifest.playlists[0].uri == "placeholder-uri-0"
    assert [segment.resolved_uri for segment in manifest.playlists[0].segments] == [
        "https://example.com/1.m4s",
        "https://example.com/2.m4s",
    ]


def test_load_unsupported_content():
    session = _session("<html></html>", "https://example.com/page", "text/html")

    with pytest.raises(ValueError):
        load_manifest("https://example.com/page", session=session)


def test_load_http_error_propagates():
    session = _session("", "https://example.com/missing.m3u8")
    session.get.return_value.raise_for_status.side_effect = requests.HTTPError("404 Client Error")

    with pytest.raises(requests.HTTPError):
        load_manifest("https://example.com/missing.m3u8", session=session)


def test_load_from_config(monkeypatch):
    fake_get = _session(MASTER, "https://example.com/master.m3u8").get
    monkeypatch.setattr("manifestkit.loader.requests.get", fake_get)

    manifest = load_from_config(LoadConfig(url="https://example.com/master.m3u8", timeout=5, verify_ssl=False))

    fake_get.assert_called_once_with("https://example.com/master.m3u8", timeout=5, verify=False)
    assert manifest.playlists[0].id == 0


def test_detect_manifest_type():
    assert detect_manifest_type("", "application/dash+xml") == "dash"
    assert detect_manifest_type("\ufeff#EXTM3U\n", "application/octet-stream") == "hls"
    assert detect_manifest_type(MPD) == "dash"
    assert detect_manifest_type("hello") is None
