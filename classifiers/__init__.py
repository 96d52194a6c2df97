"""Plugin classification package for the WordPress content sync pipeline.

This package decides which plugin owns each post meta key and site option.

Package Structure:
- prefixes: Candidate key prefixes derived from plugin slugs
- plugin_detector: Active plugin detection and meta-support probing
- plugin_classifier: Partitioning of a key/value bag into plugin groups

Classification is heuristic: keys are matched against descriptor prefixes
(most specific first), leftovers are grouped by their leading token, and
WordPress-internal or empty keys are dropped.
"""

from .prefixes import build_descriptor, generate_prefixes_from_slug
from .plugin_classifier import PluginClassifier, group_meta_by_plugin, group_options_by_plugin, is_empty
from .plugin_detector import check_meta_support, detect_plugins

__all__ = [
    'build_descriptor',
    'generate_prefixes_from_slug',
    'PluginClassifier',
    'group_meta_by_plugin',
    'group_options_by_plugin',
    'is_empty',
    'check_meta_support',
    'detect_plugins',
]
