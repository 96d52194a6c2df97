"""Tests for export/import run orchestration."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from config_loader import ConfigLoader
from exporters.content_exporter import ContentExporter
from exporters.mu_plugin import MU_PLUGIN_DIR, MU_PLUGIN_FILE
from file_utils import read_json, write_json
from models import ContentType, ItemResult
from orchestrator import SetupError, SyncOrchestrator


def make_config(root, **overrides):
    config = {
        'wordpress': {'url': 'https://example.com', 'user': 'admin', 'app_password': 'secret'},
        'export': {'output_dir': str(root)},
        'import': {'input_dir': str(root)},
        'advanced': {'progress_bars': False},
    }
    for section, values in overrides.items():
        if isinstance(values, dict):
            config.setdefault(section, {}).update(values)
        else:
            config[section] = values
    return ConfigLoader.with_defaults(config)


class TestExportRun(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name) / 'export'
        self.client = MagicMock()
        self.client.test_connection.return_value = {'name': 'Example'}
        self.client.get_json.return_value = [{'id': 1, 'meta': {}}]
        self.client.list_plugins.return_value = []
        self.client.get_site_options.return_value = {}

    def tearDown(self):
        self.tmp.cleanup()

    def test_connection_failure_aborts(self):
        self.client.test_connection.side_effect = requests.ConnectionError('refused')
        orchestrator = SyncOrchestrator(make_config(self.root), client=self.client)

        with self.assertRaises(SetupError):
            orchestrator.run_export()
        self.client.list_items.assert_not_called()

    def test_item_failure_does_not_stop_run(self):
        self.client.list_items.side_effect = lambda content_type, status: (
            [{'id': 1, 'slug': 'ok'}, {'id': 2, 'slug': 'broken'}] if content_type == 'posts' else []
        )
        exported = (ItemResult(slug='ok', content_type=ContentType.POSTS, action='export', item_id=1), 'ok')
        orchestrator = SyncOrchestrator(make_config(self.root), client=self.client)

        with patch.object(ContentExporter, 'export_item', side_effect=[exported, OSError('disk full')]):
            report = orchestrator.run_export()

        self.assertEqual(report.counts(ContentType.POSTS), {'exported': 1, 'failed': 1})
        self.assertEqual(report.failed[0].slug, 'broken')
        self.assertEqual(report.meta_support, 'limited')

        manifest = read_json(self.root / 'manifest.json')
        self.assertEqual([entry['dir'] for entry in manifest['posts']], ['ok'])
        self.assertEqual(manifest['source_url'], 'https://example.com')
        self.assertTrue((self.root / MU_PLUGIN_DIR / MU_PLUGIN_FILE).exists())

    def test_listing_failure_skips_type(self):
        def list_items(content_type, status):
            if content_type == 'posts':
                raise requests.Timeout('slow')
            return [{'id': 3, 'slug': 'about'}]

        self.client.list_items.side_effect = list_items
        exported = (ItemResult(slug='about', content_type=ContentType.PAGES, action='export', item_id=3), 'about')
        orchestrator = SyncOrchestrator(make_config(self.root), client=self.client)

        with patch.object(ContentExporter, 'export_item', return_value=exported):
            report = orchestrator.run_export()

        self.assertEqual(report.counts(ContentType.PAGES), {'exported': 1, 'failed': 0})

    def test_selected_type_and_status(self):
        self.client.list_items.return_value = []
        config = make_config(self.root, content_type='pages', export={'status': 'draft'})

        SyncOrchestrator(config, client=self.client).run_export()

        self.client.list_items.assert_called_once_with('pages', 'draft')


class TestImportRun(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.client = MagicMock()
        self.client.test_connection.return_value = {'name': 'Target'}
        self.client.find_item_by_slug.return_value = None
        self.client.create_item.return_value = {'id': 3}

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_input_aborts_before_network(self):
        config = make_config(self.root / 'missing')
        with self.assertRaises(SetupError):
            SyncOrchestrator(config, client=self.client).run_import()
        self.client.test_connection.assert_not_called()

    def test_scans_directories_and_continues_after_failure(self):
        write_json(self.root / 'posts' / 'a' / 'metadata.json', {'id': 1, 'slug': 'a', 'title': 'A'})
        (self.root / 'posts' / 'b').mkdir(parents=True)

        report = SyncOrchestrator(make_config(self.root), client=self.client).run_import()

        self.assertEqual(report.counts(ContentType.POSTS), {'created': 1, 'updated': 0, 'skipped': 0, 'failed': 1})
        self.assertEqual(report.failed[0].slug, 'b')
        self.client.create_item.assert_called_once()

    def test_manifest_order_is_used(self):
        for slug in ('a', 'z'):
            write_json(self.root / 'posts' / slug / 'metadata.json', {'id': 1, 'slug': slug, 'title': slug})
        write_json(self.root / 'manifest.json', {
            'source_url': 'https://old.test',
            'posts': [{'slug': 'z', 'id': 2, 'dir': 'z'}],
            'pages': [],
        })

        SyncOrchestrator(make_config(self.root), client=self.client).run_import()

        self.client.find_item_by_slug.assert_called_once_with('posts', 'z')

    def test_manifest_export_date_is_parsed(self):
        write_json(self.root / 'manifest.json', {
            'source_url': 'https://old.test',
            'export_date': '2026-01-02T03:04:05.123Z',
            'posts': [],
            'pages': [],
        })

        with self.assertLogs('wp_content_sync.orchestrator', level='INFO') as logs:
            SyncOrchestrator(make_config(self.root), client=self.client).run_import()

        self.assertTrue(any('Export date: 2026-01-02 03:04:05' in line for line in logs.output))

    def test_unreadable_export_date_is_reported(self):
        write_json(self.root / 'manifest.json', {'source_url': 'https://old.test', 'export_date': 'yesterday'})

        with self.assertLogs('wp_content_sync.orchestrator', level='WARNING') as logs:
            SyncOrchestrator(make_config(self.root), client=self.client).run_import()

        self.assertTrue(any('Unreadable export date' in line for line in logs.output))

    def test_dry_run_makes_no_changes(self):
        write_json(self.root / 'posts' / 'a' / 'metadata.json', {'id': 1, 'slug': 'a', 'title': 'A'})
        config = make_config(self.root, **{'import': {'dry_run': True}})

        report = SyncOrchestrator(config, client=self.client).run_import()

        self.assertTrue(report.dry_run)
        self.assertEqual(report.counts(ContentType.POSTS)['created'], 1)
        self.client.create_item.assert_not_called()
        self.client.update_item.assert_not_called()
        self.client.set_site_options.assert_not_called()


if __name__ == '__main__':
    unittest.main()
