"""
Content importer for posts and pages.

Reads one exported item directory, decides create/update/skip against the
target site by slug, uploads media and restores media URLs for items that
will be written, then pushes the merged plugin metadata.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from exporters.link_rewriter import LinkRewriter
from file_utils import read_html, read_json
from importers.media_uploader import MediaUploader
from importers.meta_importer import MEDIA_UPLOADS_FILE, METADATA_FILE, MetaImporter, read_group_files
from importers.reconciler import decide_action
from models import ActionType, ContentItem, ContentType, ImportMode, ItemResult, MediaMapping

BODY_FILE = 'body.html'
MEDIA_DIR = 'media'


class LocalStateError(Exception):
    """Raised when an exported item directory is missing or malformed."""
    pass


class ContentImporter:
    """
    Imports exported items into a WordPress site.

    Items are matched by slug, never by id. The reconciliation decision
    depends only on the configured mode and whether the slug exists.
    """

    def __init__(
        self,
        client,
        config: Optional[Dict[str, Any]] = None,
        media_uploader: Optional[MediaUploader] = None,
        meta_importer: Optional[MetaImporter] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the content importer.

        Args:
            client: WordPressClient instance
            config: Configuration dictionary
            media_uploader: MediaUploader instance (created when omitted)
            meta_importer: MetaImporter instance (created when omitted)
            logger: Logger instance
        """
        self.client = client
        self.config = config or {}
        self.logger = logger or logging.getLogger('wp_content_sync.importers.content_importer')
        self.media_uploader = media_uploader or MediaUploader(client, self.config)
        self.meta_importer = meta_importer or MetaImporter(client)
        self.link_rewriter = LinkRewriter()

        import_config = self.config.get('import', {})
        self.mode = ImportMode(import_config.get('mode', 'sync'))
        self.include_media = import_config.get('include_media', True)
        self.dry_run = import_config.get('dry_run', False)
        self.target_url = self.config.get('wordpress', {}).get('url')

    def read_local_item(self, content_dir: Path, content_type: ContentType) -> ContentItem:
        """
        Load an item from its directory.

        Args:
            content_dir: Item directory
            content_type: Posts or pages

        Returns:
            ContentItem with body content

        Raises:
            LocalStateError: If metadata.json is missing or unreadable
        """
        metadata_path = Path(content_dir) / METADATA_FILE
        if not metadata_path.exists():
            raise LocalStateError(f"{METADATA_FILE} not found in {content_dir}")

        try:
            metadata = read_json(metadata_path)
        except ValueError as e:
            raise LocalStateError(f"Invalid {METADATA_FILE} in {content_dir}: {e}") from e

        if not isinstance(metadata, dict) or not metadata.get('slug'):
            raise LocalStateError(f"{METADATA_FILE} in {content_dir} has no slug")

        body_path = Path(content_dir) / BODY_FILE
        content = ''
        if body_path.exists():
            content = read_html(body_path)
        else:
            self.logger.debug(f"No {BODY_FILE} in {content_dir}, using empty content")

        return ContentItem.from_metadata(metadata, content_type, content)

    def read_local_meta(self, content_dir: Path) -> Tuple[Dict[str, Any], List[str]]:
        """Read the item's plugin group files; malformed files are local state errors."""
        try:
            return read_group_files(content_dir)
        except ValueError as e:
            raise LocalStateError(f"Invalid metadata file in {content_dir}: {e}") from e

    def import_item(self, content_dir: Union[str, Path], content_type: ContentType) -> ItemResult:
        """
        Import one item directory.

        Args:
            content_dir: Item directory
            content_type: Posts or pages

        Returns:
            ItemResult

        Raises:
            LocalStateError: For malformed local state
            WordPressApiError / requests.RequestException: For lookup or write failures
        """
        content_dir = Path(content_dir)
        item = self.read_local_item(content_dir, content_type)
        meta, groups = self.read_local_meta(content_dir)
        result = ItemResult(slug=item.slug, content_type=content_type, dry_run=self.dry_run)

        self.logger.debug(f"Processing {content_type.value}/{item.slug}")

        existing = self.client.find_item_by_slug(content_type.value, item.slug)
        decision = decide_action(self.mode, existing is not None)
        result.action = decision.action.value

        if decision.is_skip:
            result.reason = decision.reason
            self.logger.info(f"Skipped {content_type.value}/{item.slug}: {decision.reason}")
            return result

        if self.include_media:
            item.content = self._transfer_media(content_dir, item.content, result)

        if self.dry_run:
            result.item_id = existing.get('id') if existing else None
            meta_outcome = self.meta_importer.push_meta(meta, groups, content_type, result.item_id, dry_run=True)
            result.extensions = meta_outcome['groups']
            result.meta_fields = meta_outcome['fields']
            self.logger.info(f"[DRY RUN] Would {decision.action.value} {content_type.value}/{item.slug}")
            return result

        payload = item.to_api_payload()
        if decision.action == ActionType.CREATE:
            response = self.client.create_item(content_type.value, payload)
            self.logger.info(f"Created {content_type.value}/{item.slug} (ID: {response.get('id')})")
        else:
            response = self.client.update_item(content_type.value, existing['id'], payload)
            self.logger.info(f"Updated {content_type.value}/{item.slug} (ID: {response.get('id')})")

        result.item_id = response.get('id')

        meta_outcome = self.meta_importer.push_meta(meta, groups, content_type, result.item_id)
        result.extensions = meta_outcome['groups']
        result.meta_fields = meta_outcome['fields']
        if meta_outcome['warning']:
            result.warnings.append(meta_outcome['warning'])

        return result

    def _transfer_media(self, content_dir: Path, content: str, result: ItemResult) -> str:
        """Upload the item's media and point the content at the uploaded URLs."""
        media_dir = content_dir / MEDIA_DIR
        if not media_dir.is_dir():
            return content

        uploads_path = content_dir / MEDIA_UPLOADS_FILE
        mapping = MediaMapping.load(uploads_path, direction=MediaMapping.IMPORT, target=self.target_url)

        if self.dry_run:
            result.media_transferred = len(self.media_uploader.pending_files(media_dir, mapping))
            self.media_uploader.upload_all(media_dir, mapping, dry_run=True)
            return content

        def on_progress(filename, success, error=None):
            if success:
                result.media_transferred += 1
            else:
                result.media_failed += 1
                result.warnings.append(f"Media upload failed: {filename} ({error})")

        before = len(mapping)
        mapping = self.media_uploader.upload_all(media_dir, mapping, on_progress=on_progress)
        if len(mapping) > before:
            mapping.save(uploads_path)

        return self.link_rewriter.restore_media_urls(content, mapping)
