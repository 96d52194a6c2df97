"""
Sync orchestrator for coordinating export and import runs.

This module sequences the phases of a run: connection check, plugin
detection, site-wide plugin data, then posts and pages one at a time. Item
failures are recorded in the report and the run continues; only setup
failures abort it.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from classifiers.plugin_detector import META_FULL, META_LIMITED, check_meta_support, detect_plugins
from exporters.content_exporter import ContentExporter
from exporters.mu_plugin import MU_PLUGIN_DIR, write_mu_plugin
from exporters.plugin_exporter import PluginExporter
from file_utils import ensure_dir, list_subdirs
from importers.content_importer import ContentImporter, LocalStateError
from importers.plugin_importer import PluginImporter
from logger import ProgressTracker, log_section
from models import ContentType, ExportManifest, ItemResult, PluginDescriptor
from orchestrator.sync_report import EXPORT, IMPORT, SyncReport
from wp_client import WordPressApiError, WordPressClient

MANIFEST_FILE = 'manifest.json'
PLUGINS_DIR = 'plugins'

ITEM_ERRORS = (WordPressApiError, requests.RequestException, LocalStateError, OSError, ValueError, KeyError)


class SetupError(Exception):
    """Raised when a run cannot start (backend unreachable, input missing)."""
    pass


class SyncOrchestrator:
    """Central coordinator for export (site -> files) and import (files -> site) runs."""

    def __init__(
        self,
        config: Dict[str, Any],
        client: Optional[WordPressClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize sync orchestrator.

        Args:
            config: Configuration dictionary (defaults applied)
            client: WordPressClient instance (built from config when omitted)
            logger: Optional logger instance
        """
        self.config = config
        self.client = client or WordPressClient.from_config(config)
        self.logger = logger or logging.getLogger('wp_content_sync.orchestrator')

        self.content_types = ContentType.selected(config.get('content_type', 'all'))
        self.site_url = config.get('wordpress', {}).get('url', '').rstrip('/')

    def _test_connection(self) -> Dict[str, Any]:
        self.logger.info("Testing connection...")
        try:
            site_info = self.client.test_connection()
        except (WordPressApiError, requests.RequestException) as e:
            raise SetupError(f"Connection failed: {e}") from e
        self.logger.info(f"Connected to: {site_info.get('name', self.site_url)}")
        return site_info

    def _fetch_options(self) -> Dict[str, Any]:
        try:
            options = self.client.get_site_options()
        except (WordPressApiError, requests.RequestException) as e:
            self.logger.debug(f"Could not fetch settings: {e}")
            return {}
        self.logger.debug(f"Fetched {len(options)} settings")
        return options

    def run_export(self) -> SyncReport:
        """
        Export posts, pages and plugin data to the local tree.

        Returns:
            SyncReport for the run

        Raises:
            SetupError: If the site is unreachable
        """
        export_config = self.config.get('export', {})
        root = Path(export_config.get('output_dir', './wp-export'))
        status = export_config.get('status', 'publish')
        report = SyncReport(EXPORT, logger=self.logger)

        log_section("WordPress Content Export")
        self.logger.info(f"Source: {self.site_url}")
        self.logger.info(f"Output: {root}")

        self._test_connection()

        meta_support = check_meta_support(self.client)
        report.meta_support = meta_support
        if meta_support == META_FULL:
            self.logger.info("Full meta export available (all_meta field detected)")
        elif meta_support == META_LIMITED:
            self.logger.warning("Limited meta export (standard meta only)")
            self.logger.warning(f"For full plugin data, install the mu-plugin from {MU_PLUGIN_DIR}/")
        else:
            self.logger.warning("No meta access - plugin meta will not be exported")

        descriptors, source = detect_plugins(self.client)
        report.plugin_source = source
        if descriptors:
            self.logger.info(f"Found {len(descriptors)} plugin(s) (via {source})")
            for descriptor in descriptors:
                self.logger.debug(f"  - {descriptor.name} ({descriptor.slug})")
        else:
            self.logger.warning("No plugins detected")

        ensure_dir(root)
        write_mu_plugin(root)

        manifest = ExportManifest(
            source_url=self.site_url,
            content_type=self.config.get('content_type', 'all'),
            post_status=status,
            meta_support=meta_support,
            plugin_source=source,
            installed_plugins=list(descriptors)
        )

        if export_config.get('include_plugins', True):
            self._export_plugins(descriptors, root, manifest, report)

        exporter = ContentExporter(self.client, self.config, output_dir=root)
        for content_type in self.content_types:
            self._export_type(exporter, content_type, status, descriptors, manifest, report)

        manifest.save(root / MANIFEST_FILE)
        self.logger.info(f"Manifest written to {root / MANIFEST_FILE}")
        return report.finish()

    def _export_plugins(
        self,
        descriptors: List[PluginDescriptor],
        root: Path,
        manifest: ExportManifest,
        report: SyncReport
    ) -> None:
        log_section("Global Plugin Data")
        options = self._fetch_options()
        exported = PluginExporter(self.client).export_all(descriptors, options, root / PLUGINS_DIR)
        manifest.exported_plugins = exported
        for entry in exported:
            report.add_plugin(entry['slug'], entry['name'], entry['options_count'], entry['items_count'])
        if not exported:
            self.logger.info("No global plugin data found")

    def _export_type(
        self,
        exporter: ContentExporter,
        content_type: ContentType,
        status: str,
        descriptors: List[PluginDescriptor],
        manifest: ExportManifest,
        report: SyncReport
    ) -> None:
        log_section(f"Exporting {content_type.value}")
        try:
            summaries = self.client.list_items(content_type.value, status)
        except (WordPressApiError, requests.RequestException) as e:
            self.logger.error(f"Could not list {content_type.value}: {e}")
            return

        if not summaries:
            self.logger.info(f"No {content_type.value} found")
            return

        with ProgressTracker(total_items=len(summaries), item_type=content_type.value) as tracker:
            for summary in summaries:
                try:
                    result, directory = exporter.export_item(summary, content_type, descriptors)
                except ITEM_ERRORS as e:
                    slug = summary.get('slug') or f"id-{summary.get('id')}"
                    self.logger.error(f"Failed to export {content_type.value}/{slug}: {e}")
                    report.add_result(ItemResult(slug=slug, content_type=content_type, action='export',
                                                 item_id=summary.get('id'), error=str(e)))
                    tracker.increment(success=False)
                    continue

                manifest.add_item(result, directory)
                report.add_result(result)
                tracker.increment(success=True)

    def run_import(self) -> SyncReport:
        """
        Import the local tree into the target site.

        Returns:
            SyncReport for the run

        Raises:
            SetupError: If the input root is missing or the site is unreachable
        """
        import_config = self.config.get('import', {})
        root = Path(import_config.get('input_dir', './wp-export'))
        dry_run = import_config.get('dry_run', False)
        report = SyncReport(IMPORT, dry_run=dry_run, logger=self.logger)

        log_section("WordPress Content Import")
        if dry_run:
            self.logger.info("DRY RUN - no changes will be made")

        if not root.is_dir():
            raise SetupError(f"Input directory not found: {root}")

        self.logger.info(f"Target: {self.site_url}")
        self.logger.info(f"Input: {root}")
        self.logger.info(f"Mode: {import_config.get('mode', 'sync')}")

        manifest = self._load_manifest(root)
        self._test_connection()

        if import_config.get('include_plugins', True):
            log_section("Global Plugin Data")
            plugin_stats = PluginImporter(self.client).import_all(root / PLUGINS_DIR, manifest, dry_run)
            for slug, info in plugin_stats.items():
                report.add_plugin(slug, info['name'], info['options'], info['items'], info['error'])
            if not plugin_stats:
                self.logger.info("No global plugin data found")

        importer = ContentImporter(self.client, self.config)
        for content_type in self.content_types:
            self._import_type(importer, root, content_type, manifest, report)

        return report.finish()

    def _load_manifest(self, root: Path) -> Optional[ExportManifest]:
        manifest_path = root / MANIFEST_FILE
        if not manifest_path.exists():
            self.logger.warning(f"No {MANIFEST_FILE} found, will scan directories")
            return None

        try:
            manifest = ExportManifest.load(manifest_path)
        except (ValueError, KeyError) as e:
            self.logger.warning(f"Ignoring unreadable {MANIFEST_FILE}: {e}")
            return None

        self.logger.info(f"Export from: {manifest.source_url}")
        exported_at = manifest.exported_at
        if exported_at is None:
            self.logger.warning(f"Unreadable export date in {MANIFEST_FILE}: {manifest.export_date}")
        else:
            self.logger.info(f"Export date: {exported_at:%Y-%m-%d %H:%M:%S}")
        if manifest.installed_plugins:
            self.logger.info(f"Plugins: {', '.join(plugin.name for plugin in manifest.installed_plugins)}")
        return manifest

    def _import_type(
        self,
        importer: ContentImporter,
        root: Path,
        content_type: ContentType,
        manifest: Optional[ExportManifest],
        report: SyncReport
    ) -> None:
        log_section(f"Importing {content_type.value}")
        type_dir = root / content_type.value
        if manifest is not None:
            directories = manifest.item_dirs(content_type)
        else:
            directories = list_subdirs(type_dir)

        if not directories:
            self.logger.info(f"No {content_type.value} found to import")
            return

        with ProgressTracker(total_items=len(directories), item_type=content_type.value) as tracker:
            for directory in directories:
                try:
                    result = importer.import_item(type_dir / directory, content_type)
                except ITEM_ERRORS as e:
                    self.logger.error(f"Failed to import {content_type.value}/{directory}: {e}")
                    report.add_result(ItemResult(slug=directory, content_type=content_type,
                                                 dry_run=importer.dry_run, error=str(e)))
                    tracker.increment(success=False)
                    continue

                report.add_result(result)
                tracker.increment(success=True)
