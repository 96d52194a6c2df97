"""
WordPress REST API client for the content sync tool.

This module wraps the WordPress REST API (``/wp-json/wp/v2``) with
application-password authentication, pagination, and per-call timeouts.
Requests are never retried implicitly: a failed call surfaces immediately
and the caller decides whether to continue.
"""

import logging
import os
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests
import truststore
import urllib3

logger = logging.getLogger('wp_content_sync.client')

USER_AGENT = 'WP-Content-Sync/1.0'
ALL_STATUSES = 'publish,draft,pending,private'

if os.getenv('USE_SYSTEM_CA') in ('1', 'true', 'True', 'TRUE'):
    truststore.inject_into_ssl()
    logger.info("Using system CA certificate store")


class WordPressApiError(Exception):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(f"API Error {status_code}: {message}")


class WordPressClient:
    """WordPress REST API client with Basic (application password) auth."""

    DEFAULT_TIMEOUT = 30
    DEFAULT_PER_PAGE = 100
    DEFAULT_UPLOAD_TIMEOUT_MULTIPLIER = 2

    CONTENT_TYPES = {
        'jpg': 'image/jpeg',
        'jpeg': 'image/jpeg',
        'png': 'image/png',
        'gif': 'image/gif',
        'webp': 'image/webp',
        'svg': 'image/svg+xml',
        'pdf': 'application/pdf',
    }

    def __init__(
        self,
        base_url: str,
        username: str,
        app_password: str,
        verify_ssl: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        per_page: int = DEFAULT_PER_PAGE,
        upload_timeout_multiplier: float = DEFAULT_UPLOAD_TIMEOUT_MULTIPLIER
    ):
        """
        Initialize WordPress client.

        Args:
            base_url: Site URL (e.g., "https://example.com")
            username: WordPress username
            app_password: Application password for the user
            verify_ssl: Whether to verify SSL certificates
            timeout: Request timeout in seconds
            per_page: Items per page when listing
            upload_timeout_multiplier: Upload timeout as a multiple of ``timeout``
        """
        self.base_url = base_url.rstrip('/')
        self.api_url = f"{self.base_url}/wp-json/wp/v2"
        self.timeout = timeout
        self.upload_timeout = timeout * upload_timeout_multiplier
        self.per_page = per_page

        self.session = requests.Session()
        self.session.auth = (username, app_password)
        self.session.headers.update({
            'User-Agent': USER_AGENT,
            'Accept': 'application/json'
        })

        self.session.verify = verify_ssl
        if not verify_ssl:
            logger.warning("SSL verification disabled - this is insecure!")
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        logger.debug(f"Initialized WordPress client for {self.base_url} (timeout={timeout}s)")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'WordPressClient':
        """Create client from configuration dictionary."""
        wordpress = config.get('wordpress', {})
        advanced = config.get('advanced', {})
        return cls(
            base_url=wordpress['url'],
            username=wordpress['user'],
            app_password=wordpress['app_password'],
            verify_ssl=wordpress.get('verify_ssl', True),
            timeout=advanced.get('request_timeout', cls.DEFAULT_TIMEOUT),
            per_page=advanced.get('per_page', cls.DEFAULT_PER_PAGE),
            upload_timeout_multiplier=advanced.get(
                'upload_timeout_multiplier', cls.DEFAULT_UPLOAD_TIMEOUT_MULTIPLIER
            )
        )

    def _url(self, endpoint: str) -> str:
        """Resolve an endpoint relative to ``/wp-json/wp/v2`` (or ``/wp-json`` for ``~/``)."""
        if endpoint.startswith(('http://', 'https://')):
            return endpoint
        if endpoint.startswith('~/'):
            return f"{self.base_url}/wp-json/{endpoint[2:]}"
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    def _make_request(
        self,
        method: str,
        endpoint: str,
        timeout: Optional[float] = None,
        **kwargs
    ) -> requests.Response:
        """
        Make HTTP request and raise on non-2xx status.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Endpoint path or absolute URL
            timeout: Override for the per-call timeout
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            WordPressApiError: For non-2xx responses
            requests.RequestException: For transport failures
        """
        url = self._url(endpoint)
        start_time = time.time()
        logger.debug(f"API Request: {method} {url}")

        response = self.session.request(method, url, timeout=timeout or self.timeout, **kwargs)

        elapsed = time.time() - start_time
        logger.debug(f"API Response: {response.status_code} {url} ({elapsed:.3f}s)")

        if not response.ok:
            raise WordPressApiError(response.status_code, response.text[:500], url=url)
        return response

    def request_json(self, method: str, endpoint: str, **kwargs) -> Any:
        """Make a request and decode the JSON body (``{}`` when empty)."""
        response = self._make_request(method, endpoint, **kwargs)
        return response.json() if response.content else {}

    def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request_json('GET', endpoint, params=params)

    def post_json(self, endpoint: str, data: Dict[str, Any]) -> Any:
        return self.request_json('POST', endpoint, json=data)

    def test_connection(self) -> Dict[str, Any]:
        """
        Check the site is reachable and return its index document.

        Raises:
            WordPressApiError / requests.RequestException on failure
        """
        return self.get_json('~/')

    def get_api_index(self) -> Dict[str, Any]:
        """Return the REST index (``namespaces``, site name, ...)."""
        return self.get_json('~/')

    def fetch_all(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Fetch every page of a collection endpoint.

        Args:
            endpoint: Collection endpoint (e.g., "/posts")
            params: Query parameters

        Returns:
            All items across pages
        """
        items = []
        page = 1
        total_pages = 1
        query = {'per_page': self.per_page, **(params or {})}

        while page <= total_pages:
            query['page'] = page
            response = self._make_request('GET', endpoint, params=query)
            items.extend(response.json())
            total_pages = int(response.headers.get('X-WP-TotalPages', '1') or 1)
            page += 1

        return items

    def list_items(self, content_type: str, status: str = 'publish') -> List[Dict[str, Any]]:
        """
        List posts or pages.

        Args:
            content_type: "posts" or "pages"
            status: Status filter; "all" expands to every editable status

        Returns:
            Item summaries in the order the API enumerates them
        """
        if status == 'all':
            status = ALL_STATUSES
        return self.fetch_all(f"/{content_type}", {'status': status})

    def get_item(self, content_type: str, item_id: int) -> Dict[str, Any]:
        """Get a single post/page with edit context (raw content, meta)."""
        return self.get_json(f"/{content_type}/{item_id}", params={'context': 'edit'})

    def find_item_by_slug(self, content_type: str, slug: str) -> Optional[Dict[str, Any]]:
        """
        Look up a post/page by slug across all statuses.

        Returns:
            Item data or None if no item has this slug
        """
        items = self.get_json(
            f"/{content_type}",
            params={'slug': slug, 'status': ALL_STATUSES, 'context': 'edit'}
        )
        return items[0] if items else None

    def create_item(self, content_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a post/page."""
        return self.request_json('POST', f"/{content_type}", json=data)

    def update_item(self, content_type: str, item_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Update an existing post/page."""
        return self.request_json('PUT', f"/{content_type}/{item_id}", json=data)

    def upload_asset(self, data: bytes, filename: str, content_type: Optional[str] = None) -> Dict[str, Any]:
        """
        Upload a media file.

        Args:
            data: File content
            filename: Name reported to WordPress
            content_type: MIME type; guessed from the extension when omitted

        Returns:
            Media item data (``id``, ``source_url``, ...)
        """
        if not content_type:
            ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
            content_type = self.CONTENT_TYPES.get(ext, 'application/octet-stream')

        return self.request_json(
            'POST',
            '/media',
            data=data,
            headers={
                'Content-Type': content_type,
                'Content-Disposition': f'attachment; filename="{filename}"'
            },
            timeout=self.upload_timeout
        )

    def download(self, url: str, timeout: Optional[float] = None) -> bytes:
        """
        Download an asset.

        Args:
            url: Absolute asset URL
            timeout: Override for the per-call timeout

        Returns:
            Response body

        Assets on other hosts are fetched without the site credentials.
        """
        if urlparse(url).netloc.lower() == urlparse(self.base_url).netloc.lower():
            response = self.session.get(url, timeout=timeout or self.timeout)
        else:
            response = requests.get(url, timeout=timeout or self.timeout, verify=self.session.verify)
        if not response.ok:
            raise WordPressApiError(response.status_code, response.reason or 'download failed', url=url)
        return response.content

    def get_site_options(self) -> Dict[str, Any]:
        """Get the site settings bag."""
        return self.get_json('/settings')

    def set_site_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Update site settings."""
        return self.post_json('/settings', options)

    def list_plugins(self) -> List[Dict[str, Any]]:
        """List installed plugins (requires an administrator account)."""
        return self.get_json('/plugins')
