"""Tests for the WordPress REST API client."""

import unittest
from unittest.mock import MagicMock, patch

from wp_client import ALL_STATUSES, WordPressApiError, WordPressClient


def make_response(payload=None, status=200, headers=None, content=b'x'):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.json.return_value = payload
    response.headers = headers or {}
    response.content = content
    response.text = 'error body'
    response.reason = 'Not Found' if status == 404 else 'OK'
    return response


class TestWordPressClient(unittest.TestCase):
    def setUp(self):
        self.client = WordPressClient('https://example.com/', 'admin', 'app pass', timeout=10, per_page=2)
        self.client.session = MagicMock()

    def test_url_resolution(self):
        self.assertEqual(self.client._url('/posts'), 'https://example.com/wp-json/wp/v2/posts')
        self.assertEqual(self.client._url('~/'), 'https://example.com/wp-json/')
        self.assertEqual(
            self.client._url('~/contact-form-7/v1/contact-forms'),
            'https://example.com/wp-json/contact-form-7/v1/contact-forms'
        )
        self.assertEqual(self.client._url('https://cdn.test/a.jpg'), 'https://cdn.test/a.jpg')

    def test_fetch_all_follows_total_pages(self):
        self.client.session.request.side_effect = [
            make_response([{'id': 1}, {'id': 2}], headers={'X-WP-TotalPages': '2'}),
            make_response([{'id': 3}], headers={'X-WP-TotalPages': '2'}),
        ]

        items = self.client.list_items('posts', 'all')

        self.assertEqual([item['id'] for item in items], [1, 2, 3])
        first_params = self.client.session.request.call_args_list[0].kwargs['params']
        self.assertEqual(first_params['status'], ALL_STATUSES)
        self.assertEqual(first_params['per_page'], 2)
        self.assertEqual(self.client.session.request.call_args_list[1].kwargs['params']['page'], 2)

    def test_error_status_raises(self):
        self.client.session.request.return_value = make_response(status=401)

        with self.assertRaises(WordPressApiError) as ctx:
            self.client.get_item('posts', 5)

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.url, 'https://example.com/wp-json/wp/v2/posts/5')

    def test_find_item_by_slug(self):
        self.client.session.request.return_value = make_response([])
        self.assertIsNone(self.client.find_item_by_slug('pages', 'about'))

        self.client.session.request.return_value = make_response([{'id': 9, 'slug': 'about'}])
        self.assertEqual(self.client.find_item_by_slug('pages', 'about')['id'], 9)
        params = self.client.session.request.call_args.kwargs['params']
        self.assertEqual(params['slug'], 'about')

    def test_upload_uses_longer_timeout(self):
        self.client.session.request.return_value = make_response({'id': 4, 'source_url': 'https://example.com/a.png'})

        media = self.client.upload_asset(b'png', 'a.png')

        kwargs = self.client.session.request.call_args.kwargs
        self.assertEqual(media['id'], 4)
        self.assertEqual(kwargs['timeout'], 20)
        self.assertEqual(kwargs['headers']['Content-Type'], 'image/png')
        self.assertEqual(kwargs['headers']['Content-Disposition'], 'attachment; filename="a.png"')

    def test_download_failure(self):
        self.client.session.get.return_value = make_response(status=404)
        with self.assertRaises(WordPressApiError):
            self.client.download('https://example.com/missing.jpg')

    def test_download_same_host_uses_session(self):
        self.client.session.get.return_value = make_response(content=b'img')

        self.assertEqual(self.client.download('https://example.com/wp-content/uploads/a.jpg'), b'img')
        self.client.session.get.assert_called_once()

    def test_download_foreign_host_sends_no_credentials(self):
        """Assets on another host must not receive the application password."""
        client = WordPressClient('https://example.com', 'admin', 'secret pass')

        with patch('wp_client.requests.get', return_value=make_response(content=b'img')) as plain_get, \
                patch.object(client.session, 'get') as session_get:
            data = client.download('https://cdn.other.test/x.png')

        self.assertEqual(data, b'img')
        session_get.assert_not_called()
        kwargs = plain_get.call_args.kwargs
        self.assertNotIn('auth', kwargs)
        self.assertNotIn('Authorization', kwargs.get('headers') or {})

    def test_from_config(self):
        client = WordPressClient.from_config({
            'wordpress': {'url': 'https://example.com', 'user': 'u', 'app_password': 'p', 'verify_ssl': True},
            'advanced': {'request_timeout': 5, 'upload_timeout_multiplier': 3, 'per_page': 50},
        })
        self.assertEqual(client.timeout, 5)
        self.assertEqual(client.upload_timeout, 15)
        self.assertEqual(client.per_page, 50)
        self.assertEqual(client.session.auth, ('u', 'p'))


if __name__ == '__main__':
    unittest.main()
