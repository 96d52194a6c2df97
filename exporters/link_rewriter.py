"""Link rewriter for swapping media URLs between remote and local forms."""

import logging
import re
from typing import Dict, Optional, Union

from models import MediaMapping

logger = logging.getLogger('wp_content_sync.exporters.link_rewriter')

LOCAL_MEDIA_DIR = 'media'

MappingLike = Union[MediaMapping, Dict[str, str]]


class LinkRewriter:
    """
    Rewrites media references in post content.

    Export replaces each remote URL with ``./media/<filename>``; import puts
    the uploaded URL back in place of every local form of the file path
    (``./media/x``, ``/media/x``, ``media/x``).
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the link rewriter.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger('wp_content_sync.exporters.link_rewriter')

    def replace_media_urls(self, content: str, mapping: MappingLike) -> str:
        """
        Replace remote media URLs with local relative paths.

        URLs are handled longest first so a URL that is a prefix of another
        cannot corrupt the longer one.

        Args:
            content: HTML content
            mapping: URL -> local filename

        Returns:
            Updated content
        """
        if not content or not mapping:
            return content

        rewritten = 0
        for url in sorted(mapping, key=len, reverse=True):
            local_path = f"./{LOCAL_MEDIA_DIR}/{mapping[url]}"
            count = content.count(url)
            if count:
                content = content.replace(url, local_path)
                rewritten += count

        self.logger.debug(f"Replaced {rewritten} media reference(s) with local paths")
        return content

    def restore_media_urls(self, content: str, mapping: MappingLike) -> str:
        """
        Replace local media paths with remote URLs.

        Args:
            content: HTML content
            mapping: Local filename -> remote URL

        Returns:
            Updated content
        """
        if not content or not mapping:
            return content

        rewritten = 0
        for filename in sorted(mapping, key=len, reverse=True):
            url = mapping[filename]
            pattern = re.compile(
                r'(?<![\w.\-/])(?:\./|/)?' + LOCAL_MEDIA_DIR + '/' + re.escape(filename) + r'(?![\w.\-])'
            )
            content, count = pattern.subn(lambda _match: url, content)
            rewritten += count

        self.logger.debug(f"Restored {rewritten} media reference(s) to remote URLs")
        return content


_default_rewriter = LinkRewriter()


def replace_media_urls(content: str, mapping: MappingLike) -> str:
    """Module-level shortcut for ``LinkRewriter().replace_media_urls``."""
    return _default_rewriter.replace_media_urls(content, mapping)


def restore_media_urls(content: str, mapping: MappingLike) -> str:
    """Module-level shortcut for ``LinkRewriter().restore_media_urls``."""
    return _default_rewriter.restore_media_urls(content, mapping)
