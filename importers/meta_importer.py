"""Merge per-plugin metadata files and push them back to the target item."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests

from file_utils import list_files, read_json
from models import ContentType
from wp_client import WordPressApiError

METADATA_FILE = 'metadata.json'
META_FILE = 'meta.json'
MEDIA_MAPPING_FILE = 'media-mapping.json'
MEDIA_UPLOADS_FILE = 'media-uploads.json'

NON_GROUP_FILES = frozenset({METADATA_FILE, META_FILE, MEDIA_MAPPING_FILE, MEDIA_UPLOADS_FILE})


@dataclass
class StrategyOutcome:
    """Result of one metadata push attempt."""

    strategy: str
    success: bool
    error: Optional[str] = None


class MetaStrategy:
    """Base class for a way of writing metadata to an item."""

    name = 'base'
    field = ''

    def attempt(self, client, content_type: ContentType, item_id: int, meta: Dict[str, Any]) -> StrategyOutcome:
        try:
            client.update_item(content_type.value, item_id, {self.field: meta})
        except (WordPressApiError, requests.RequestException) as e:
            return StrategyOutcome(self.name, False, str(e))
        return StrategyOutcome(self.name, True)


class AllMetaStrategy(MetaStrategy):
    """Write through the ``all_meta`` field exposed by the helper mu-plugin."""

    name = 'all_meta'
    field = 'all_meta'


class StandardMetaStrategy(MetaStrategy):
    """Write through the core ``meta`` field (registered keys only)."""

    name = 'meta'
    field = 'meta'


def read_group_files(content_dir: Path) -> Tuple[Dict[str, Any], List[str]]:
    """
    Read and merge an item's metadata files.

    Group files are merged in sorted filename order; ``meta.json`` is merged
    last so its values win.

    Args:
        content_dir: Item directory

    Returns:
        Tuple of (merged meta, group names read)
    """
    content_dir = Path(content_dir)
    merged: Dict[str, Any] = {}
    groups: List[str] = []

    for filename in list_files(content_dir, '.json'):
        if filename in NON_GROUP_FILES:
            continue
        data = read_json(content_dir / filename)
        if not isinstance(data, dict):
            continue
        merged.update(data)
        groups.append(filename[:-len('.json')])

    meta_path = content_dir / META_FILE
    if meta_path.exists():
        data = read_json(meta_path)
        if isinstance(data, dict):
            merged.update(data)

    return merged, groups


class MetaImporter:
    """
    Pushes an item's merged metadata through an ordered list of strategies.

    The first strategy that succeeds wins. When every strategy fails the
    failure is returned as a warning; the item itself still succeeds.
    """

    def __init__(
        self,
        client,
        strategies: Optional[List[MetaStrategy]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the metadata importer.

        Args:
            client: WordPressClient instance
            strategies: Ordered strategies (all_meta, then meta by default)
            logger: Logger instance
        """
        self.client = client
        self.strategies = strategies if strategies is not None else [AllMetaStrategy(), StandardMetaStrategy()]
        self.logger = logger or logging.getLogger('wp_content_sync.importers.meta_importer')

    def import_meta(
        self,
        content_dir: Path,
        content_type: ContentType,
        item_id: Optional[int],
        dry_run: bool = False
    ) -> Dict[str, Any]:
        """
        Merge metadata files and push them to ``item_id``.

        Args:
            content_dir: Item directory
            content_type: Posts or pages
            item_id: Remote item id (None in dry-run for a would-be create)
            dry_run: If True, only count the fields

        Returns:
            Dict with ``groups``, ``fields``, ``strategy`` and ``warning``
        """
        meta, groups = read_group_files(content_dir)
        return self.push_meta(meta, groups, content_type, item_id, dry_run=dry_run)

    def push_meta(
        self,
        meta: Dict[str, Any],
        groups: List[str],
        content_type: ContentType,
        item_id: Optional[int],
        dry_run: bool = False
    ) -> Dict[str, Any]:
        """Push already-merged metadata through the strategies."""
        outcome = {'groups': groups, 'fields': len(meta), 'strategy': None, 'warning': None}

        if not meta:
            return outcome

        if dry_run:
            self.logger.info(f"[DRY RUN] Would import {len(meta)} meta field(s)")
            return outcome

        errors = []
        for strategy in self.strategies:
            result = strategy.attempt(self.client, content_type, item_id, meta)
            if result.success:
                outcome['strategy'] = result.strategy
                self.logger.debug(f"Imported {len(meta)} meta field(s) via {result.strategy}: {', '.join(groups)}")
                return outcome
            self.logger.debug(f"Meta strategy '{result.strategy}' failed: {result.error}")
            errors.append(f"{result.strategy}: {result.error}")

        outcome['warning'] = f"Could not import meta ({'; '.join(errors)})"
        self.logger.warning(f"{content_type.value}/{item_id}: {outcome['warning']}")
        return outcome
