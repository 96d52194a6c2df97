"""Per-item exporter writing posts and pages to the local tree."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests

from classifiers.plugin_classifier import group_meta_by_plugin
from exporters.link_rewriter import LinkRewriter
from exporters.media_downloader import MediaDownloader
from file_utils import ensure_dir, get_content_dir, write_html, write_json
from models import ContentItem, ContentType, ItemResult, MediaMapping, PluginDescriptor
from wp_client import WordPressApiError

BODY_FILE = 'body.html'
METADATA_FILE = 'metadata.json'
META_FILE = 'meta.json'
MEDIA_MAPPING_FILE = 'media-mapping.json'
MEDIA_DIR = 'media'

# Group files must not shadow the fixed files of an item directory
RESERVED_STEMS = frozenset({'body', 'metadata', 'meta', 'media-mapping', 'media-uploads'})


def group_filename(group_name: str) -> str:
    """File name for a plugin group, avoiding the item's fixed file names."""
    if group_name in RESERVED_STEMS:
        group_name = f"{group_name}-plugin"
    return f"{group_name}.json"


class ContentExporter:
    """
    Exports one post or page at a time.

    This exporter:
    1. Fetches the full item (edit context)
    2. Downloads referenced media and rewrites URLs to ``./media/...``
    3. Writes body.html and metadata.json
    4. Splits the meta bag into one file per plugin plus meta.json
    """

    def __init__(
        self,
        client,
        config: Optional[Dict[str, Any]] = None,
        output_dir: Optional[Path] = None,
        media_downloader: Optional[MediaDownloader] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the content exporter.

        Args:
            client: WordPressClient instance
            config: Configuration dictionary
            output_dir: Export root (overrides ``export.output_dir``)
            media_downloader: MediaDownloader instance (created when omitted)
            logger: Logger instance
        """
        self.client = client
        self.config = config or {}
        self.logger = logger or logging.getLogger('wp_content_sync.exporters.content_exporter')

        export_config = self.config.get('export', {})
        self.output_dir = Path(output_dir or export_config.get('output_dir', './wp-export'))
        self.include_media = export_config.get('include_media', True)
        self.site_url = self.config.get('wordpress', {}).get('url')

        self.media_downloader = media_downloader or MediaDownloader(client, self.config)
        self.link_rewriter = LinkRewriter()

    def fetch_full_item(self, summary: Dict[str, Any], content_type: ContentType) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Fetch an item with edit context, falling back to the list summary.

        Returns:
            Tuple of (item data, warning or None)
        """
        try:
            return self.client.get_item(content_type.value, summary['id']), None
        except (WordPressApiError, requests.RequestException) as e:
            warning = f"Could not fetch full data, using summary: {e}"
            self.logger.warning(f"{content_type.value}/{summary.get('slug')}: {warning}")
            return summary, warning

    def export_item(
        self,
        summary: Dict[str, Any],
        content_type: ContentType,
        descriptors: List[PluginDescriptor]
    ) -> Tuple[ItemResult, str]:
        """
        Export one item.

        Args:
            summary: Item as returned by the list endpoint
            content_type: Posts or pages
            descriptors: Plugins used to classify the item's meta

        Returns:
            Tuple of (ItemResult, item directory name)
        """
        data, warning = self.fetch_full_item(summary, content_type)
        item = ContentItem.from_api(data, content_type)
        content_dir = get_content_dir(self.output_dir, content_type.value, item.safe_slug)
        ensure_dir(content_dir)

        result = ItemResult(slug=item.safe_slug, content_type=content_type, action='export', item_id=item.id)
        if warning:
            result.warnings.append(warning)

        self.logger.debug(f"Exporting {content_type.value}/{item.safe_slug} (ID: {item.id})")

        content = item.content
        if self.include_media and content:
            content = self._export_media(content, content_dir, result)

        write_html(content_dir / BODY_FILE, content)
        write_json(content_dir / METADATA_FILE, item.to_metadata())

        result.extensions = self._export_meta(item.meta, descriptors, content_dir)
        return result, content_dir.name

    def _export_media(self, content: str, content_dir: Path, result: ItemResult) -> str:
        """Download media into the item folder and point the content at it."""
        def on_progress(url, success, error=None):
            if success:
                result.media_transferred += 1
            else:
                result.media_failed += 1
                result.warnings.append(f"Media download failed: {url} ({error})")

        mapping = MediaMapping(direction=MediaMapping.EXPORT)
        mapping = self.media_downloader.download_all(
            content,
            content_dir / MEDIA_DIR,
            self.site_url,
            mapping=mapping,
            on_progress=on_progress
        )

        if len(mapping) == 0:
            return content

        mapping.save(content_dir / MEDIA_MAPPING_FILE)
        return self.link_rewriter.replace_media_urls(content, mapping)

    def _export_meta(self, meta: Dict[str, Any], descriptors: List[PluginDescriptor], content_dir: Path) -> List[str]:
        """Write one file per plugin group plus meta.json; return group names."""
        if not meta:
            return []

        classification = group_meta_by_plugin(meta, descriptors)
        groups = []

        for name, group in classification.groups.items():
            if not group.values:
                continue
            write_json(content_dir / group_filename(name), group.values)
            groups.append(name)
            self.logger.debug(f"  Saved {name} data ({len(group.values)} fields)")

        if classification.remaining:
            write_json(content_dir / META_FILE, classification.remaining)
            self.logger.debug(f"  Saved additional meta ({len(classification.remaining)} fields)")

        return groups
