"""Candidate key-prefix generation from plugin slugs."""

import logging
import re
from typing import Dict, List, Optional

from models import PluginDescriptor

logger = logging.getLogger('wp_content_sync.classifiers.prefixes')

SUFFIX_QUALIFIERS = re.compile(r'-(pro|premium|lite|free|plus)$', re.IGNORECASE)
LEADING_QUALIFIERS = re.compile(r'^(seo-by-|wordpress-|wp-|simple-|easy-|advanced-|ultimate-)')

# Plugins whose stored keys do not follow from their slug
KNOWN_VARIATIONS: Dict[str, List[str]] = {
    'seo-by-rank-math': ['rank_math', 'rankmath'],
    'wordpress-seo': ['wpseo', 'yoast_wpseo', '_yoast'],
    'all-in-one-seo-pack': ['aioseo', '_aioseo'],
    'contact-form-7': ['wpcf7'],
    'wpforms-lite': ['wpforms'],
    'advanced-custom-fields': ['acf', '_acf'],
    'elementor': ['_elementor'],
    'woocommerce': ['wc_', '_wc'],
    'jetpack': ['_jetpack'],
    'updraftplus': ['updraft_'],
    'wordfence': ['wf_', 'wordfence_'],
    'all-in-one-wp-migration': ['ai1wm_'],
}


def _add(prefixes: List[str], value: str) -> None:
    if value and value not in prefixes:
        prefixes.append(value)


def _add_forms(prefixes: List[str], value: str) -> None:
    """Add the underscore form first, then the hyphenated form."""
    _add(prefixes, value.replace('-', '_'))
    _add(prefixes, value)


def generate_prefixes_from_slug(slug: str, text_domain: Optional[str] = None) -> List[str]:
    """
    Generate possible meta/option key prefixes from a plugin slug.

    e.g. ``contact-form-7`` -> ``contact_form_7``, ``contact-form-7``,
    ``cf7``, ``contact``, ``contact_form``, ``contact-form``, ``wpcf7``

    Args:
        slug: Plugin slug (directory name)
        text_domain: Optional text domain when it differs from the slug

    Returns:
        Ordered, deduplicated prefix candidates
    """
    prefixes: List[str] = []

    _add_forms(prefixes, slug)

    if text_domain and text_domain != slug:
        _add_forms(prefixes, text_domain)

    clean_slug = SUFFIX_QUALIFIERS.sub('', slug)
    _add_forms(prefixes, clean_slug)

    without_leading = LEADING_QUALIFIERS.sub('', slug)
    if without_leading != slug:
        _add_forms(prefixes, without_leading)

    words = [word for word in clean_slug.split('-') if word]
    if len(words) >= 2:
        # Numeric words stay whole: contact-form-7 -> cf7
        initials = ''.join(word if word.isdigit() else word[0] for word in words)
        if len(initials) >= 2:
            _add(prefixes, initials)

    non_numeric = [word for word in words if not word.isdigit()]
    if non_numeric:
        _add(prefixes, non_numeric[0])

    if len(non_numeric) >= 2:
        _add(prefixes, '_'.join(non_numeric[-2:]))
        _add(prefixes, '-'.join(non_numeric[-2:]))

    for variation in KNOWN_VARIATIONS.get(slug, []):
        _add(prefixes, variation)

    return prefixes


def build_descriptor(
    slug: str,
    name: Optional[str] = None,
    version: Optional[str] = None,
    text_domain: Optional[str] = None,
    namespace: Optional[str] = None
) -> PluginDescriptor:
    """Create a PluginDescriptor with heuristically generated prefixes."""
    descriptor = PluginDescriptor(
        slug=slug,
        prefixes=generate_prefixes_from_slug(slug, text_domain),
        name=name,
        version=version,
        text_domain=text_domain,
        namespace=namespace
    )
    logger.debug(f"Prefixes for {slug}: {descriptor.prefixes}")
    return descriptor
