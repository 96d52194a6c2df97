"""Tests for plugin detection and meta support probing."""

import unittest
from unittest.mock import MagicMock

import requests

from classifiers.plugin_detector import (
    META_FULL,
    META_LIMITED,
    META_NONE,
    SOURCE_API,
    SOURCE_NAMESPACES,
    SOURCE_NONE,
    check_meta_support,
    descriptors_from_namespaces,
    descriptors_from_plugins,
    detect_plugins,
)
from wp_client import WordPressApiError


class TestDescriptorsFromPlugins(unittest.TestCase):
    def test_only_active_plugins(self):
        plugins = [
            {
                'plugin': 'contact-form-7/wp-contact-form-7.php',
                'status': 'active',
                'name': 'Contact Form 7',
                'version': '5.9',
                'textdomain': 'contact-form-7',
            },
            {'plugin': 'akismet/akismet.php', 'status': 'inactive', 'name': 'Akismet'},
            {'plugin': 'hello.php', 'status': 'active', 'name': {'raw': 'Hello Dolly'}},
        ]
        descriptors = descriptors_from_plugins(plugins)

        self.assertEqual([d.slug for d in descriptors], ['contact-form-7', 'hello'])
        self.assertEqual(descriptors[0].version, '5.9')
        self.assertIn('wpcf7', descriptors[0].prefixes)
        self.assertEqual(descriptors[1].name, 'Hello Dolly')


class TestDescriptorsFromNamespaces(unittest.TestCase):
    def test_known_unknown_and_core(self):
        namespaces = ['oembed/1.0', 'wp/v2', 'contact-form-7/v1', 'rankmath/v1', 'rankmath/v2', 'myplugin/v1']
        descriptors = descriptors_from_namespaces(namespaces)

        self.assertEqual(
            [d.slug for d in descriptors],
            ['contact-form-7', 'seo-by-rank-math', 'myplugin']
        )
        self.assertEqual(descriptors[1].name, 'Rank Math SEO')
        self.assertEqual(descriptors[2].name, 'Myplugin')
        self.assertEqual(descriptors[0].namespace, 'contact-form-7/v1')


class TestDetectPlugins(unittest.TestCase):
    def test_api_source(self):
        client = MagicMock()
        client.list_plugins.return_value = [{'plugin': 'elementor/elementor.php', 'status': 'active'}]

        descriptors, source = detect_plugins(client)

        self.assertEqual(source, SOURCE_API)
        self.assertEqual(descriptors[0].slug, 'elementor')
        client.get_api_index.assert_not_called()

    def test_falls_back_to_namespaces(self):
        client = MagicMock()
        client.list_plugins.side_effect = WordPressApiError(403, 'rest_forbidden')
        client.get_api_index.return_value = {'namespaces': ['wp/v2', 'yoast/v1']}

        descriptors, source = detect_plugins(client)

        self.assertEqual(source, SOURCE_NAMESPACES)
        self.assertEqual([d.slug for d in descriptors], ['wordpress-seo'])

    def test_nothing_detected(self):
        client = MagicMock()
        client.list_plugins.side_effect = WordPressApiError(403, 'rest_forbidden')
        client.get_api_index.side_effect = requests.ConnectionError('down')

        self.assertEqual(detect_plugins(client), ([], SOURCE_NONE))


class TestCheckMetaSupport(unittest.TestCase):
    def probe(self, response=None, error=None):
        client = MagicMock()
        if error is not None:
            client.get_json.side_effect = error
        else:
            client.get_json.return_value = response
        return check_meta_support(client)

    def test_levels(self):
        self.assertEqual(self.probe([{'id': 1, 'meta': {}, 'all_meta': {}}]), META_FULL)
        self.assertEqual(self.probe([{'id': 1, 'meta': {}}]), META_LIMITED)
        self.assertEqual(self.probe([{'id': 1}]), META_NONE)
        self.assertEqual(self.probe([]), META_NONE)
        self.assertEqual(self.probe(error=WordPressApiError(401, 'unauthorized')), META_NONE)


if __name__ == '__main__':
    unittest.main()
