"""Tests for the per-item content exporter and the plugin data exporter."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import requests

from classifiers.prefixes import build_descriptor
from exporters.content_exporter import ContentExporter, group_filename
from exporters.mu_plugin import MU_PLUGIN_DIR, MU_PLUGIN_FILE, write_mu_plugin
from exporters.plugin_exporter import CF7_ENDPOINT, PluginExporter
from file_utils import generate_filename, read_html, read_json
from models import ContentType, PluginDescriptor
from wp_client import WordPressApiError

SITE = 'https://example.com'
IMAGE = 'https://example.com/wp-content/uploads/a.jpg'


class TestContentExporter(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.client = MagicMock()
        self.client.download.return_value = b'img'
        self.client.get_item.return_value = {
            'id': 5,
            'slug': 'hello-world',
            'title': {'raw': 'Hello'},
            'content': {'raw': f'<p>Hi <img src="{IMAGE}"></p>'},
            'status': 'publish',
            'all_meta': {
                'rank_math_title': 'T',
                '_edit_lock': '1:1',
                'views': 10,
            },
        }
        self.config = {
            'wordpress': {'url': SITE},
            'export': {'include_media': True, 'same_origin_media_only': True},
            'advanced': {'progress_bars': False},
        }
        self.rank_math = PluginDescriptor(slug='seo-by-rank-math', prefixes=['rank_math'])
        self.exporter = ContentExporter(self.client, self.config, output_dir=self.root)

    def tearDown(self):
        self.tmp.cleanup()

    def test_export_item_layout(self):
        result, directory = self.exporter.export_item({'id': 5, 'slug': 'hello-world'}, ContentType.POSTS, [self.rank_math])
        item_dir = self.root / 'posts' / 'hello-world'
        filename = generate_filename(IMAGE)

        self.assertEqual(directory, 'hello-world')
        self.assertEqual(read_html(item_dir / 'body.html'), f'<p>Hi <img src="./media/{filename}"></p>')
        self.assertEqual(read_json(item_dir / 'metadata.json')['title'], 'Hello')
        self.assertEqual(read_json(item_dir / 'rank-math.json'), {'rank_math_title': 'T'})
        self.assertEqual(read_json(item_dir / 'meta.json'), {'views': 10})
        self.assertEqual(read_json(item_dir / 'media-mapping.json'), {IMAGE: filename})
        self.assertTrue((item_dir / 'media' / filename).exists())

        self.assertEqual(result.extensions, ['rank-math'])
        self.assertEqual(result.media_transferred, 1)
        self.assertEqual(result.warnings, [])

    def test_media_disabled_keeps_remote_urls(self):
        self.config['export']['include_media'] = False
        exporter = ContentExporter(self.client, self.config, output_dir=self.root)

        exporter.export_item({'id': 5, 'slug': 'hello-world'}, ContentType.POSTS, [])

        body = read_html(self.root / 'posts' / 'hello-world' / 'body.html')
        self.assertIn(IMAGE, body)
        self.client.download.assert_not_called()

    def test_full_fetch_failure_falls_back_to_summary(self):
        self.client.get_item.side_effect = WordPressApiError(403, 'rest_forbidden_context')
        summary = {'id': 8, 'slug': 'draft-post', 'title': {'rendered': 'Draft'}, 'content': {'rendered': '<p>x</p>'}}

        result, directory = self.exporter.export_item(summary, ContentType.POSTS, [])

        self.assertEqual(directory, 'draft-post')
        self.assertEqual(len(result.warnings), 1)
        self.assertEqual(read_html(self.root / 'posts' / 'draft-post' / 'body.html'), '<p>x</p>')

    def test_failed_download_is_a_warning(self):
        self.client.download.side_effect = requests.ConnectionError('reset')

        result, _ = self.exporter.export_item({'id': 5, 'slug': 'hello-world'}, ContentType.POSTS, [])

        self.assertEqual(result.media_failed, 1)
        self.assertIsNone(result.error)
        self.assertIn(IMAGE, read_html(self.root / 'posts' / 'hello-world' / 'body.html'))

    def test_group_filename_avoids_fixed_files(self):
        self.assertEqual(group_filename('rank-math'), 'rank-math.json')
        self.assertEqual(group_filename('meta'), 'meta-plugin.json')
        self.assertEqual(group_filename('metadata'), 'metadata-plugin.json')


class TestPluginExporter(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.plugins_dir = Path(self.tmp.name) / 'plugins'
        self.cf7 = build_descriptor('contact-form-7', name='Contact Form 7')
        self.rank_math = PluginDescriptor(slug='seo-by-rank-math', prefixes=['rank_math'], name='Rank Math')
        self.options = {'rank_math_modules': ['seo'], 'blogname': 'My Site'}

        def get_json(endpoint, params=None):
            if endpoint == CF7_ENDPOINT:
                return [{'id': 1}]
            if endpoint == f"{CF7_ENDPOINT}/1":
                return {
                    'id': 1,
                    'slug': 'contact-1',
                    'title': 'Contact',
                    'locale': 'en_US',
                    'properties': {'form': {'content': '[text your-name]'}, 'mail': {'subject': 'Hi'}},
                }
            raise AssertionError(f"unexpected endpoint {endpoint}")

        self.client = MagicMock()
        self.client.get_json.side_effect = get_json

    def tearDown(self):
        self.tmp.cleanup()

    def test_export_all(self):
        exporter = PluginExporter(self.client)
        entries = exporter.export_all([self.cf7, self.rank_math], self.options, self.plugins_dir)

        self.assertEqual(entries, [
            {'slug': 'contact-form-7', 'name': 'Contact Form 7', 'options_count': 0, 'items_count': 1},
            {'slug': 'seo-by-rank-math', 'name': 'Rank Math', 'options_count': 1, 'items_count': 0},
        ])

        cf7_data = read_json(self.plugins_dir / 'contact-form-7.json')
        self.assertEqual(cf7_data['forms'][0]['form'], '[text your-name]')
        self.assertEqual(cf7_data['forms'][0]['mail'], {'subject': 'Hi'})
        self.assertNotIn('options', cf7_data)

        rank_math_data = read_json(self.plugins_dir / 'seo-by-rank-math.json')
        self.assertEqual(rank_math_data['options'], {'rank_math_modules': ['seo']})

    def test_failing_plugin_is_isolated(self):
        self.client.get_json.side_effect = requests.Timeout('slow')
        exporter = PluginExporter(self.client)

        entries = exporter.export_all([self.cf7, self.rank_math], self.options, self.plugins_dir)

        self.assertEqual([entry['slug'] for entry in entries], ['seo-by-rank-math'])
        self.assertEqual(exporter.stats['plugins_failed'], 1)
        self.assertFalse((self.plugins_dir / 'contact-form-7.json').exists())

    def test_plugin_without_data_writes_nothing(self):
        exporter = PluginExporter(self.client)
        entries = exporter.export_all([self.rank_math], {'blogname': 'x'}, self.plugins_dir)

        self.assertEqual(entries, [])
        self.assertFalse(self.plugins_dir.exists())


class TestMuPlugin(unittest.TestCase):
    def test_write_mu_plugin(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_mu_plugin(tmp)
            self.assertEqual(path, Path(tmp) / MU_PLUGIN_DIR / MU_PLUGIN_FILE)
            self.assertIn("'all_meta'", read_html(path))


if __name__ == '__main__':
    unittest.main()
