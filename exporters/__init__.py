"""Export package for the WordPress content sync pipeline.

This package writes a site's posts, pages and plugin data to a local tree
with per-item directories, downloaded media, and metadata split by plugin.

Package Structure:
- content_exporter: Per-item export (body, metadata, plugin groups, media)
- media_extractor: Finds media references in post content
- media_downloader: Downloads referenced media into the item folder
- link_rewriter: Rewrites media URLs between remote and local forms
- plugin_exporter: Site-wide plugin options and plugin REST data
- mu_plugin: Reference mu-plugin exposing all post meta over REST

Configuration Referenced:
- export.output_dir: Root of the exported tree
- export.include_media: Enable/disable media download
- export.same_origin_media_only: Only download media hosted on the site
"""

from .content_exporter import ContentExporter
from .link_rewriter import LinkRewriter, replace_media_urls, restore_media_urls
from .media_downloader import MediaDownloader
from .media_extractor import extract_media_urls
from .plugin_exporter import PluginExporter

__all__ = [
    'ContentExporter',
    'LinkRewriter',
    'replace_media_urls',
    'restore_media_urls',
    'MediaDownloader',
    'extract_media_urls',
    'PluginExporter'
]
