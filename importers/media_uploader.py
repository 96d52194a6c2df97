"""
Media Uploader for exported post assets.

Uploads the files of an item's ``media/`` folder to the WordPress media
library and records the new URLs in the item's upload mapping.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import requests
from tqdm import tqdm

from file_utils import list_files
from models import MediaMapping
from wp_client import WordPressApiError

ALLOWED_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp', '.svg', '.pdf')


def is_uploadable(filename: str) -> bool:
    """Check the file extension against the upload allow-list (case-insensitive)."""
    return filename.lower().endswith(ALLOWED_EXTENSIONS)


class MediaUploader:
    """
    Handles uploading local media files to the WordPress media library.

    This uploader:
    1. Lists allowed files in the item's media directory
    2. Skips files already present in the upload mapping
    3. Uploads the rest with the longer upload timeout
    4. Records filename -> new URL in the mapping

    Upload failures are logged and reported, never fatal for the batch.
    """

    def __init__(
        self,
        client,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the media uploader.

        Args:
            client: WordPressClient instance
            config: Configuration dictionary
            logger: Logger instance
        """
        self.client = client
        self.config = config or {}
        self.logger = logger or logging.getLogger('wp_content_sync.importers.media_uploader')
        self.show_progress = self.config.get('advanced', {}).get('progress_bars', True)

        self.stats = {
            'uploaded': 0,
            'reused': 0,
            'failed': 0
        }

    def pending_files(self, media_dir: Path, mapping: Optional[MediaMapping] = None) -> List[str]:
        """
        List files that an upload run would send.

        Args:
            media_dir: Item media directory
            mapping: Existing upload mapping (filename -> URL)

        Returns:
            Sorted filenames not yet uploaded
        """
        files = [name for name in list_files(media_dir) if is_uploadable(name)]
        if mapping is None:
            return files
        return [name for name in files if name not in mapping]

    def upload_all(
        self,
        media_dir: Path,
        mapping: Optional[MediaMapping] = None,
        on_progress: Optional[Callable[..., None]] = None,
        dry_run: bool = False
    ) -> MediaMapping:
        """
        Upload every pending file in ``media_dir``.

        Args:
            media_dir: Item media directory
            mapping: Upload mapping to extend (a new one when omitted)
            on_progress: Called as ``on_progress(filename, success, error=None)``
            dry_run: If True, only log what would be uploaded

        Returns:
            The mapping (filename -> remote URL)
        """
        mapping = mapping if mapping is not None else MediaMapping(direction=MediaMapping.IMPORT)
        media_dir = Path(media_dir)

        already = [name for name in list_files(media_dir) if is_uploadable(name) and name in mapping]
        self.stats['reused'] += len(already)

        pending = self.pending_files(media_dir, mapping)
        if not pending:
            return mapping

        if dry_run:
            for filename in pending:
                self.logger.info(f"[DRY RUN] Would upload media: {filename}")
            return mapping

        files_iter = pending
        if self._should_show_progress():
            files_iter = tqdm(pending, desc=f"Uploading: {media_dir.parent.name[:30]}", leave=False)

        for filename in files_iter:
            try:
                media = self.client.upload_asset((media_dir / filename).read_bytes(), filename)
            except (WordPressApiError, requests.RequestException, OSError) as e:
                self.logger.warning(f"Failed to upload {filename}: {e}")
                self.stats['failed'] += 1
                if on_progress:
                    on_progress(filename, False, str(e))
                continue

            source_url = media.get('source_url') if isinstance(media, dict) else None
            if not source_url:
                error = 'upload response has no source_url'
                self.logger.warning(f"Failed to upload {filename}: {error}")
                self.stats['failed'] += 1
                if on_progress:
                    on_progress(filename, False, error)
                continue

            mapping[filename] = source_url
            self.stats['uploaded'] += 1
            self.logger.debug(f"Uploaded {filename} -> {mapping[filename]}")
            if on_progress:
                on_progress(filename, True)

        return mapping

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        if not self.show_progress:
            return False
        return sys.stdout.isatty()

    def get_stats(self) -> Dict[str, int]:
        """Get upload statistics."""
        return self.stats.copy()
