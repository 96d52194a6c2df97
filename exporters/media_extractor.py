"""Discovery of embedded media references in rendered post content."""

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

logger = logging.getLogger('wp_content_sync.exporters.media_extractor')

IMG_SRC_PATTERN = re.compile(r'<img[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)
SRCSET_PATTERN = re.compile(r'srcset=["\']([^"\']+)["\']', re.IGNORECASE)
WP_IMAGE_PATTERN = re.compile(r'wp-image-\d+[^>]*src=["\']([^"\']+)["\']', re.IGNORECASE)
BACKGROUND_PATTERN = re.compile(r'background-image:\s*url\([\'"]?([^\'")\s]+)[\'"]?\)', re.IGNORECASE)
FETCHABLE_SCHEMES = ('', 'http', 'https')


def _srcset_urls(srcset: str) -> List[str]:
    """Parse ``"url1 1x, url2 2x"`` / ``"url1 100w, url2 200w"`` candidates."""
    urls = []
    for entry in srcset.split(','):
        tokens = entry.strip().split()
        if tokens:
            urls.append(tokens[0])
    return urls


def _host(url: str) -> Optional[str]:
    try:
        return urlparse(url).netloc or None
    except ValueError:
        return None


def _is_fetchable(url: str) -> bool:
    """Relative or http(s) URLs only; drops data:, blob: and similar."""
    try:
        return urlparse(url).scheme.lower() in FETCHABLE_SCHEMES
    except ValueError:
        return False


def extract_media_urls(content: str, site_url: Optional[str] = None) -> List[str]:
    """
    Extract media URLs referenced by HTML content.

    Recognizes ``<img src>``, ``srcset`` candidates, ``wp-image-N`` block
    markers and inline ``background-image: url(...)`` styles.

    Args:
        content: Rendered or raw HTML
        site_url: Site origin; when given, only same-host and relative URLs are kept

    Returns:
        Deduplicated URLs in first-seen order
    """
    if not content:
        return []

    found: List[str] = []

    def add(url: str) -> None:
        if url and url not in found:
            found.append(url)

    for match in IMG_SRC_PATTERN.finditer(content):
        add(match.group(1))

    for match in SRCSET_PATTERN.finditer(content):
        for url in _srcset_urls(match.group(1)):
            add(url)

    for match in WP_IMAGE_PATTERN.finditer(content):
        add(match.group(1))

    for match in BACKGROUND_PATTERN.finditer(content):
        add(match.group(1))

    found = [url for url in found if _is_fetchable(url)]

    if site_url:
        site_host = _host(site_url)
        found = [url for url in found if _host(url) in (None, site_host)]

    logger.debug(f"Found {len(found)} media reference(s)")
    return found
