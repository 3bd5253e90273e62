"""
Manifest loader for ManifestKit.

Fetches HLS and DASH manifests over HTTP and returns them parsed and
normalized.
"""

import logging
from typing import Any, Dict, Iterable, Optional

import requests

from .manifest import parse_manifest, parse_master_xml, resolve_segment_uris
from .media_types import simple_type_from_source_type
from .models import LoadConfig, Manifest

logger = logging.getLogger(__name__)


def detect_manifest_type(content: str, content_type: Optional[str] = None) -> Optional[str]:
    """
    Work out which grammar a manifest is written in.

    The Content-Type header wins; servers often send a generic type though,
    so the content itself is checked next.

    Args:
        content: Manifest text
        content_type: Content-Type header value, if any

    Returns:
        'hls', 'dash', or None if neither
    """
    simple_type = simple_type_from_source_type((content_type or '').split(';')[0].strip())
    if simple_type in ('hls', 'dash'):
        return simple_type

    head = content.lstrip('\ufeff \t\r\n')
    if head.startswith('#EXTM3U'):
        return 'hls'
    if head.startswith('<') and '<MPD' in head[:4096]:
        return 'dash'
    return None


def load_manifest(
    url: str,
    timeout: int = 30,
    verify_ssl: bool = True,
    session: Optional[requests.Session] = None,
    custom_tag_parsers: Iterable[Any] = (),
    custom_tag_mappers: Iterable[Any] = (),
    client_offset: float = 0,
    sidx_mapping: Optional[Dict[str, Any]] = None,
) -> Manifest:
    """
    Download a manifest and parse it.

    The URL after redirects is used as the manifest URI. HLS media playlists
    are resolved against it here, since only playlists inside a master are
    resolved while parsing.

    Args:
        url: Manifest URL
        timeout: Request timeout in seconds (default: 30)
        verify_ssl: Whether to verify SSL certificates (default: True)
        session: Optional requests session to reuse connections
        custom_tag_parsers: CustomTagParser rules for HLS manifests
        custom_tag_mappers: CustomTagMapper rules for HLS manifests
        client_offset: Server clock minus client clock in milliseconds (DASH)
        sidx_mapping: Segment index data for SegmentBase representations (DASH)

    Returns:
        Normalized Manifest

    Raises:
        requests.RequestException: If the download fails
        ValueError: If the response isn't an HLS or DASH manifest
    """
    http = session or requests
    logger.info(f"Loading manifest: {url}")

    response = http.get(url, timeout=timeout, verify=verify_ssl)
    response.raise_for_status()

    src = response.url or url
    if src != url:
        logger.debug(f"Manifest redirected to {src}")

    manifest_type = detect_manifest_type(response.text, response.headers.get('Content-Type'))

    if manifest_type == 'dash':
        return parse_master_xml(
            master_xml=response.text,
            src_url=src,
            client_offset=client_offset,
            sidx_mapping=sidx_mapping,
        )

    if manifest_type == 'hls':
        manifest = parse_manifest(
            manifest_string=response.text,
            custom_tag_parsers=custom_tag_parsers,
            custom_tag_mappers=custom_tag_mappers,
            src=src,
        )
        if not manifest.is_master:
            manifest.resolved_uri = src
            for segment in manifest.segments:
                resolve_segment_uris(segment, src)
        return manifest

    raise ValueError(f"Unsupported manifest at {src} (Content-Type: {response.headers.get('Content-Type')})")


def load_from_config(config: LoadConfig) -> Manifest:
    """Load a manifest using a LoadConfig object."""
    return load_manifest(
        url=config.url,
        timeout=config.timeout,
        verify_ssl=config.verify_ssl,
        custom_tag_parsers=config.custom_tag_parsers,
        custom_tag_mappers=config.custom_tag_mappers,
        client_offset=config.client_offset,
        sidx_mapping=config.sidx_mapping,
    )
