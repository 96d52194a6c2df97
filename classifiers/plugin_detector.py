"""Detection of active plugins and of the meta fields a site exposes."""

import logging
from typing import Any, Dict, List, Tuple

import requests

from classifiers.prefixes import build_descriptor
from models import PluginDescriptor
from wp_client import WordPressApiError

logger = logging.getLogger('wp_content_sync.classifiers.plugin_detector')

SOURCE_API = 'api'
SOURCE_NAMESPACES = 'namespaces'
SOURCE_NONE = 'none'

META_FULL = 'full'
META_LIMITED = 'limited'
META_NONE = 'none'

# REST namespace -> plugin, for sites that hide /wp/v2/plugins
NAMESPACE_MAP: Dict[str, Dict[str, str]] = {
    'contact-form-7/v1': {'slug': 'contact-form-7', 'name': 'Contact Form 7'},
    'rankmath/v1': {'slug': 'seo-by-rank-math', 'name': 'Rank Math SEO'},
    'yoast/v1': {'slug': 'wordpress-seo', 'name': 'Yoast SEO'},
    'wc/v3': {'slug': 'woocommerce', 'name': 'WooCommerce'},
    'wpforms/v1': {'slug': 'wpforms-lite', 'name': 'WPForms'},
    'gf/v2': {'slug': 'gravityforms', 'name': 'Gravity Forms'},
    'elementor/v1': {'slug': 'elementor', 'name': 'Elementor'},
    'acf/v1': {'slug': 'advanced-custom-fields', 'name': 'Advanced Custom Fields'},
    'jetpack/v4': {'slug': 'jetpack', 'name': 'Jetpack'},
    'updraftplus/v1': {'slug': 'updraftplus', 'name': 'UpdraftPlus'},
    'wordfence/v1': {'slug': 'wordfence', 'name': 'Wordfence Security'},
}

CORE_NAMESPACES = ('wp/', 'oembed/', 'wp-site-health/', 'wp-block-editor/')


def _is_core_namespace(namespace: str) -> bool:
    return namespace.startswith(CORE_NAMESPACES)


def _title_case(slug: str) -> str:
    return ' '.join(word.capitalize() for word in slug.replace('_', '-').split('-') if word)


def descriptors_from_plugins(plugins: List[Dict[str, Any]]) -> List[PluginDescriptor]:
    """
    Build descriptors for the active entries of ``/wp/v2/plugins``.

    Args:
        plugins: Plugin list as returned by the API

    Returns:
        Descriptors in API order
    """
    descriptors = []
    for plugin in plugins:
        if plugin.get('status') != 'active':
            continue

        plugin_file = plugin.get('plugin') or ''
        slug = plugin_file.split('/')[0]
        if slug.endswith('.php'):
            slug = slug[:-len('.php')]
        if not slug:
            continue

        name = plugin.get('name')
        if isinstance(name, dict):
            name = name.get('raw') or name.get('rendered')

        text_domain = plugin.get('textdomain') or slug
        descriptors.append(build_descriptor(
            slug,
            name=name or slug,
            version=plugin.get('version'),
            text_domain=text_domain
        ))
    return descriptors


def descriptors_from_namespaces(namespaces: List[str]) -> List[PluginDescriptor]:
    """
    Infer plugins from the REST namespaces they register.

    Known namespaces map to their plugin slug; unknown ones become a
    descriptor named after the namespace root. One descriptor per slug.

    Args:
        namespaces: ``namespaces`` list from the REST index

    Returns:
        Descriptors in namespace order
    """
    descriptors: List[PluginDescriptor] = []
    seen = set()

    for namespace in namespaces:
        if _is_core_namespace(namespace):
            continue

        root = namespace.split('/')[0]
        info = None
        for known, known_info in NAMESPACE_MAP.items():
            if root.startswith(known.split('/')[0]):
                info = known_info
                break

        if info is None:
            info = {'slug': root, 'name': _title_case(root)}

        if info['slug'] in seen:
            continue
        seen.add(info['slug'])
        descriptors.append(build_descriptor(info['slug'], name=info['name'], namespace=namespace))

    return descriptors


def detect_plugins(client) -> Tuple[List[PluginDescriptor], str]:
    """
    Detect the site's active plugins.

    Tries the plugins endpoint first, then falls back to REST namespaces.

    Args:
        client: WordPressClient instance

    Returns:
        Tuple of (descriptors, source) where source is "api", "namespaces" or "none"
    """
    try:
        plugins = client.list_plugins()
        return descriptors_from_plugins(plugins), SOURCE_API
    except (WordPressApiError, requests.RequestException, ValueError) as e:
        logger.debug(f"Could not fetch plugins via API: {e}")

    try:
        index = client.get_api_index()
        return descriptors_from_namespaces(index.get('namespaces', [])), SOURCE_NAMESPACES
    except (WordPressApiError, requests.RequestException, ValueError) as e:
        logger.debug(f"Could not detect plugins from namespaces: {e}")

    return [], SOURCE_NONE


def check_meta_support(client) -> str:
    """
    Probe which meta field the site exposes on pages.

    Returns:
        "full" (``all_meta`` from the helper mu-plugin), "limited"
        (registered ``meta`` only) or "none"
    """
    try:
        pages = client.get_json('/pages', params={'per_page': 1, 'context': 'edit'})
    except (WordPressApiError, requests.RequestException, ValueError) as e:
        logger.debug(f"Meta support probe failed: {e}")
        return META_NONE

    if not pages:
        return META_NONE
    if 'all_meta' in pages[0]:
        return META_FULL
    if 'meta' in pages[0]:
        return META_LIMITED
    return META_NONE
