"""
URL utilities for ManifestKit.
"""

import logging
from typing import Optional
from urllib.parse import urljoin

logger = logging.getLogger(__name__)


def resolve_url(base_url: Optional[str], relative_url: Optional[str]) -> Optional[str]:
    """
    Resolve a (possibly relative) URL against a base URL.

    The last path segment of the base is replaced by the reference, the same
    way a browser resolves links relative to the current document. Absolute
    references are returned as they are.

    Without a base URL there is nothing to resolve against, so the reference
    is returned unchanged. Malformed input never raises; the reference is
    returned unresolved instead.

    Args:
        base_url: URL of the document containing the reference
        relative_url: Reference to resolve

    Returns:
        Absolute URL, or relative_url when it can't be resolved

    Example:
        >>> resolve_url("http://example.com/master.m3u8", "media/seg1.ts")
        'http://example.com/media/seg1.ts'
        >>> resolve_url(None, "foo/bar.ts")
        'foo/bar.ts'
    """
    if not base_url or relative_url is None:
        return relative_url

    try:
        return urljoin(base_url, relative_url)
    except (ValueError, TypeError) as e:
        logger.debug(f"Could not resolve {relative_url!r} against {base_url!r}: {e}")
        return relative_url
