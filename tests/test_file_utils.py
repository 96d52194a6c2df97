"""Tests for filesystem helpers."""

import os
import tempfile
import unittest
from pathlib import Path

from file_utils import (
    generate_filename,
    get_content_dir,
    list_files,
    list_subdirs,
    read_json,
    safe_dir_name,
    write_json,
)


class TestSafeNames(unittest.TestCase):
    def test_safe_dir_name_strips_unsafe_characters(self):
        """Slugs are lowercased and reduced to [a-z0-9-]."""
        self.assertEqual(safe_dir_name('Hello World!'), 'hello-world')
        self.assertEqual(safe_dir_name('über--café'), 'ber-caf')

    def test_get_content_dir(self):
        path = get_content_dir('/tmp/export', 'posts', 'My Post')
        self.assertEqual(path, Path('/tmp/export/posts/my-post'))

    def test_generate_filename_is_stable(self):
        """The same URL always maps to the same local name."""
        url = 'https://example.com/wp-content/uploads/2024/01/Photo.JPG'
        name = generate_filename(url)

        self.assertEqual(name, generate_filename(url))
        self.assertTrue(name.startswith('photo-'))
        self.assertTrue(name.endswith('.jpg'))

    def test_generate_filename_disambiguates_same_basename(self):
        first = generate_filename('https://example.com/2023/a.png')
        second = generate_filename('https://example.com/2024/a.png')
        self.assertNotEqual(first, second)

    def test_generate_filename_without_extension(self):
        name = generate_filename('https://example.com/image')
        self.assertTrue(name.endswith('.jpg'))


class TestPersistence(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_write_json_creates_parents_and_leaves_no_temp_files(self):
        target = self.root / 'nested' / 'data.json'
        write_json(target, {'title': 'Café', 'count': 0})

        self.assertEqual(read_json(target), {'title': 'Café', 'count': 0})
        self.assertEqual(os.listdir(target.parent), ['data.json'])

    def test_list_subdirs_missing_directory(self):
        self.assertEqual(list_subdirs(self.root / 'missing'), [])

    def test_list_subdirs_sorted(self):
        (self.root / 'b').mkdir()
        (self.root / 'a').mkdir()
        (self.root / 'file.txt').write_text('x')
        self.assertEqual(list_subdirs(self.root), ['a', 'b'])

    def test_list_files_with_extension(self):
        (self.root / 'b.json').write_text('{}')
        (self.root / 'a.json').write_text('{}')
        (self.root / 'body.html').write_text('')
        (self.root / 'media').mkdir()

        self.assertEqual(list_files(self.root, '.json'), ['a.json', 'b.json'])
        self.assertEqual(list_files(self.root), ['a.json', 'b.json', 'body.html'])


if __name__ == '__main__':
    unittest.main()
