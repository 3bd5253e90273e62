"""
Source type detection for ManifestKit.

Maps MIME types of manifest sources to the grammar that parses them.
"""

import re
from typing import Optional

MPEGURL_RE = re.compile(r'^(audio|video|application)/(x-|vnd\.apple\.)?mpegurl', re.IGNORECASE)
DASH_RE = re.compile(r'^application/dash\+xml', re.IGNORECASE)

# Pre-parsed manifest objects handed over instead of a URL
# (vnd = vendor, +json = structure of the payload).
VHS_JSON_TYPE = 'application/vnd.vhs+json'


def simple_type_from_source_type(mime_type: Optional[str]) -> Optional[str]:
    """
    Get the simple manifest type for a source MIME type.

    Args:
        mime_type: MIME type, e.g. from a Content-Type header

    Returns:
        'hls', 'dash', 'vhs-json', or None when the type isn't a manifest

    Example:
        >>> simple_type_from_source_type("application/x-mpegURL")
        'hls'
        >>> simple_type_from_source_type("application/dash+xml")
        'dash'
    """
    if not mime_type:
        return None

    if MPEGURL_RE.match(mime_type):
        return 'hls'

    if DASH_RE.match(mime_type):
        return 'dash'

    if mime_type == VHS_JSON_TYPE:
        return 'vhs-json'

    return None
