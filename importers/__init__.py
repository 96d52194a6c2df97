"""Import package for the WordPress content sync pipeline.

This package pushes an exported tree back into a WordPress site.

Package Structure:
- reconciler: Create/update/skip decision from import mode and remote state
- content_importer: Per-item import (media, content, reconciliation, meta)
- media_uploader: Uploads local media and records the new URLs
- meta_importer: Merges per-plugin meta files and pushes them via strategies
- plugin_importer: Site-wide plugin options and Contact Form 7 forms

Key Features:
- Items matched by slug, never by id
- Media uploads reused across runs against the same target
- Ordered meta strategies (all_meta, then standard meta)
- Dry-run mode for safe preview of import operations
"""

from .content_importer import ContentImporter, LocalStateError
from .media_uploader import MediaUploader
from .meta_importer import AllMetaStrategy, MetaImporter, StandardMetaStrategy, StrategyOutcome
from .plugin_importer import PluginImporter
from .reconciler import decide_action

__all__ = [
    'ContentImporter',
    'LocalStateError',
    'MediaUploader',
    'AllMetaStrategy',
    'MetaImporter',
    'StandardMetaStrategy',
    'StrategyOutcome',
    'PluginImporter',
    'decide_action'
]
