"""Tests for run report aggregation."""

import json
import tempfile
import unittest
from pathlib import Path

from models import ContentType, ItemResult
from orchestrator.sync_report import EXPORT, IMPORT, SyncReport


class TestSyncReport(unittest.TestCase):
    def make_import_report(self, dry_run=False):
        report = SyncReport(IMPORT, dry_run=dry_run)
        report.add_result(ItemResult(slug='a', content_type=ContentType.POSTS, action='create', media_transferred=2))
        report.add_result(ItemResult(slug='b', content_type=ContentType.POSTS, action='update', extensions=['rank-math']))
        report.add_result(ItemResult(slug='c', content_type=ContentType.POSTS, action='skip', reason='exists (mode=create)'))
        report.add_result(ItemResult(slug='d', content_type=ContentType.PAGES, error='API Error 500: boom'))
        report.add_result(ItemResult(
            slug='e', content_type=ContentType.PAGES, action='create',
            extensions=['rank-math', 'elementor'], warnings=['Could not import meta'], media_failed=1
        ))
        return report.finish()

    def test_import_counts(self):
        report = self.make_import_report()

        self.assertEqual(report.counts(ContentType.POSTS), {'created': 1, 'updated': 1, 'skipped': 1, 'failed': 0})
        self.assertEqual(report.counts(ContentType.PAGES), {'created': 1, 'updated': 0, 'skipped': 0, 'failed': 1})
        self.assertEqual(report.media_transferred, 2)
        self.assertEqual(report.media_failed, 1)
        self.assertEqual([result.slug for result in report.failed], ['d'])
        self.assertEqual(report.warnings, ['pages/e: Could not import meta'])
        self.assertEqual(report.extension_counts(), {'rank-math': 2, 'elementor': 1})

    def test_export_counts(self):
        report = SyncReport(EXPORT)
        report.add_result(ItemResult(slug='a', content_type=ContentType.POSTS, action='export'))
        report.add_result(ItemResult(slug='b', content_type=ContentType.POSTS, action='export', error='timeout'))

        self.assertEqual(report.counts(ContentType.POSTS), {'exported': 1, 'failed': 1})
        self.assertEqual(report.counts(ContentType.PAGES), {'exported': 0, 'failed': 0})

    def test_console_report(self):
        report = self.make_import_report(dry_run=True)
        report.add_plugin('contact-form-7', 'Contact Form 7', options=0, items=2)

        text = report.format_console_report()

        self.assertIn('Import Summary (dry run)', text)
        self.assertIn('Media to upload: 2', text)
        self.assertIn('Contact Form 7: 2 items', text)
        self.assertIn('pages/d: API Error 500: boom', text)

    def test_log_summary_warns_on_failures(self):
        report = self.make_import_report()
        with self.assertLogs('wp_content_sync.orchestrator.sync_report', level='INFO') as logs:
            report.log_summary()
        self.assertTrue(any('WARNING' in line and 'Could not import meta' in line for line in logs.output))

    def test_export_json_report(self):
        report = self.make_import_report()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'report.json'
            report.export_json_report(str(path))
            data = json.loads(path.read_text(encoding='utf-8'))

        self.assertEqual(data['direction'], 'import')
        self.assertEqual(data['summary']['posts']['created'], 1)
        self.assertEqual(len(data['items']), 5)

    def test_unknown_direction(self):
        with self.assertRaises(ValueError):
            SyncReport('sideways')


if __name__ == '__main__':
    unittest.main()
