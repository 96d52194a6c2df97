"""Media downloader for exporting the assets referenced by a post."""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Optional
from urllib.parse import urljoin, urlparse

import requests
from tqdm import tqdm

from exporters.media_extractor import extract_media_urls
from file_utils import ensure_dir, generate_filename
from models import MediaAsset, MediaMapping
from wp_client import WordPressApiError

ProgressCallback = Callable[..., None]


class MediaDownloader:
    """
    Downloads the media referenced by one content item into its media folder.

    This downloader:
    1. Extracts asset URLs from the content
    2. Skips assets whose derived file already exists (no network call)
    3. Downloads the rest, one request each, no retry
    4. Records every local file in the item's URL -> filename mapping

    A failed download is logged and reported, never fatal for the batch.
    """

    def __init__(
        self,
        client,
        config: Optional[Dict] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the media downloader.

        Args:
            client: WordPressClient instance
            config: Configuration dictionary
            logger: Logger instance
        """
        self.client = client
        self.config = config or {}
        self.logger = logger or logging.getLogger('wp_content_sync.exporters.media_downloader')

        export_config = self.config.get('export', {})
        self.same_origin_only = export_config.get('same_origin_media_only', True)
        self.show_progress = self.config.get('advanced', {}).get('progress_bars', True)

        self.stats = {
            'total': 0,
            'downloaded': 0,
            'cached': 0,
            'failed': 0,
            'total_size_bytes': 0
        }

    def download_all(
        self,
        content: str,
        dest_dir: Path,
        site_url: Optional[str] = None,
        mapping: Optional[MediaMapping] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> MediaMapping:
        """
        Download all media referenced by ``content``.

        Args:
            content: HTML content
            dest_dir: Item media directory
            site_url: Site origin used to filter and resolve URLs
            mapping: Existing mapping to extend (a new one when omitted)
            on_progress: Called as ``on_progress(url, success, error=None)``

        Returns:
            The mapping (URL -> filename) including every file now on disk
        """
        mapping = mapping if mapping is not None else MediaMapping(direction=MediaMapping.EXPORT)
        urls = extract_media_urls(content, site_url if self.same_origin_only else None)
        if not urls:
            return mapping

        self.logger.debug(f"Processing {len(urls)} media reference(s) into {dest_dir}")
        ensure_dir(dest_dir)

        urls_iter = urls
        if self._should_show_progress():
            urls_iter = tqdm(urls, desc=f"Media: {Path(dest_dir).parent.name[:30]}", leave=False)

        for url in urls_iter:
            asset = self.download_one(url, Path(dest_dir), site_url)
            if asset.status == 'failed':
                if on_progress:
                    on_progress(url, False, asset.error)
                continue

            mapping[url] = asset.filename
            if on_progress:
                on_progress(url, True)

        return mapping

    def download_one(self, url: str, dest_dir: Path, site_url: Optional[str] = None) -> MediaAsset:
        """
        Fetch a single asset unless its file already exists.

        Args:
            url: Asset URL as written in the content
            dest_dir: Item media directory
            site_url: Site origin for resolving relative URLs

        Returns:
            MediaAsset describing the outcome
        """
        self.stats['total'] += 1
        filename = generate_filename(url)
        local_path = dest_dir / filename
        asset = MediaAsset(source_url=url, filename=filename, local_path=local_path)

        if local_path.exists():
            self.logger.debug(f"Already downloaded: {filename}")
            self.stats['cached'] += 1
            asset.status = 'cached'
            return asset

        fetch_url = self._resolve(url, site_url)
        try:
            data = self.client.download(fetch_url)
        except (WordPressApiError, requests.RequestException) as e:
            self.logger.warning(f"Failed to download {fetch_url}: {e}")
            self.stats['failed'] += 1
            asset.status = 'failed'
            asset.error = str(e)
            return asset

        local_path.write_bytes(data)
        self.stats['downloaded'] += 1
        self.stats['total_size_bytes'] += len(data)
        asset.status = 'downloaded'
        self.logger.debug(f"Saved media {fetch_url} -> {local_path}")
        return asset

    @staticmethod
    def _resolve(url: str, site_url: Optional[str]) -> str:
        """Resolve relative and protocol-relative URLs against the site origin."""
        if urlparse(url).scheme:
            return url
        if site_url:
            return urljoin(site_url.rstrip('/') + '/', url)
        return url

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        if not self.show_progress:
            return False
        return sys.stdout.isatty()

    def get_stats(self) -> Dict[str, int]:
        """Get download statistics."""
        return self.stats.copy()
