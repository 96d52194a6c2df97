"""Site-wide plugin data importer (Contact Form 7 forms and options)."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from exporters.plugin_exporter import CF7_ENDPOINT, CF7_SLUG, form_list
from file_utils import list_files, read_json
from models import ExportManifest
from wp_client import WordPressApiError


class PluginImporter:
    """
    Imports ``plugins/<slug>.json`` files into the target site.

    Contact Form 7 forms are matched by slug (then id) and updated, or
    created when absent. Options go through the settings endpoint. A failing
    plugin is logged and skipped; the others are still imported.
    """

    def __init__(self, client, logger: Optional[logging.Logger] = None):
        """
        Initialize the plugin importer.

        Args:
            client: WordPressClient instance
            logger: Logger instance
        """
        self.client = client
        self.logger = logger or logging.getLogger('wp_content_sync.importers.plugin_importer')

    def plugin_files(self, plugins_dir: Path, manifest: Optional[ExportManifest] = None) -> List[Dict[str, Any]]:
        """
        List plugin data files to import.

        Uses the manifest's exported plugins when available, otherwise scans
        ``plugins_dir`` for JSON files carrying a ``plugin`` key.

        Returns:
            Entries with ``slug``, ``name`` and ``path``
        """
        plugins_dir = Path(plugins_dir)
        files = []

        if manifest and manifest.exported_plugins:
            for plugin in manifest.exported_plugins:
                path = plugins_dir / f"{plugin['slug']}.json"
                if path.exists():
                    files.append({'slug': plugin['slug'], 'name': plugin.get('name') or plugin['slug'], 'path': path})
            return files

        for filename in list_files(plugins_dir, '.json'):
            path = plugins_dir / filename
            try:
                data = read_json(path)
            except ValueError as e:
                self.logger.warning(f"Skipping unreadable plugin file {path}: {e}")
                continue
            if isinstance(data, dict) and data.get('plugin'):
                files.append({'slug': data['plugin'], 'name': data.get('name') or data['plugin'], 'path': path})
        return files

    def import_contact_forms(self, forms: List[Dict[str, Any]], dry_run: bool = False) -> Dict[str, int]:
        """
        Create or update Contact Form 7 forms.

        Returns:
            Counts of ``created`` and ``updated`` forms
        """
        stats = {'created': 0, 'updated': 0}
        if not forms:
            return stats

        existing_forms = form_list(self.client.get_json(CF7_ENDPOINT))

        for form in forms:
            existing = next(
                (f for f in existing_forms if f.get('slug') == form.get('slug') or f.get('id') == form.get('id')),
                None
            )

            if dry_run:
                verb = 'update' if existing else 'create'
                self.logger.info(f"[DRY RUN] Would {verb} CF7 form: {form.get('title')}")
                stats['updated' if existing else 'created'] += 1
                continue

            form_data = {
                'title': form.get('title'),
                'locale': form.get('locale') or '',
                'form': form.get('form'),
                'mail': form.get('mail'),
                'mail_2': form.get('mail_2') or {},
                'messages': form.get('messages') or {},
                'additional_settings': form.get('additional_settings') or '',
            }

            try:
                if existing:
                    self.client.post_json(f"{CF7_ENDPOINT}/{existing['id']}", form_data)
                    stats['updated'] += 1
                    self.logger.info(f"Updated CF7 form: {form.get('title')}")
                else:
                    self.client.post_json(CF7_ENDPOINT, form_data)
                    stats['created'] += 1
                    self.logger.info(f"Created CF7 form: {form.get('title')}")
            except (WordPressApiError, requests.RequestException) as e:
                self.logger.error(f"Failed to import CF7 form {form.get('title')}: {e}")

        return stats

    def import_options(self, name: str, options: Dict[str, Any], dry_run: bool = False) -> int:
        """
        Write plugin options through the settings endpoint.

        Returns:
            Number of options imported
        """
        if not options:
            return 0

        if dry_run:
            self.logger.info(f"[DRY RUN] Would import {len(options)} option(s) for {name}")
            return len(options)

        self.client.set_site_options(options)
        self.logger.info(f"Imported {len(options)} option(s) for {name}")
        return len(options)

    def import_all(
        self,
        plugins_dir: Path,
        manifest: Optional[ExportManifest] = None,
        dry_run: bool = False
    ) -> Dict[str, Dict[str, Any]]:
        """
        Import every plugin data file.

        Args:
            plugins_dir: Directory holding ``<slug>.json`` files
            manifest: Export manifest, if one was found
            dry_run: If True, only report what would be imported

        Returns:
            Per-plugin stats keyed by slug (``name``, ``options``, ``items``, ``error``)
        """
        results: Dict[str, Dict[str, Any]] = {}

        for entry in self.plugin_files(plugins_dir, manifest):
            slug = entry['slug']
            stats = {'name': entry['name'], 'options': 0, 'items': 0, 'error': None}

            try:
                plugin_data = read_json(entry['path'])
                if slug == CF7_SLUG and plugin_data.get('forms'):
                    form_stats = self.import_contact_forms(plugin_data['forms'], dry_run)
                    stats['items'] = form_stats['created'] + form_stats['updated']
                stats['options'] = self.import_options(entry['name'], plugin_data.get('options') or {}, dry_run)
            except (WordPressApiError, requests.RequestException, ValueError) as e:
                self.logger.warning(f"Could not import plugin data for {entry['name']}: {e}")
                stats['error'] = str(e)

            if stats['options'] or stats['items'] or stats['error']:
                results[slug] = stats

        return results
