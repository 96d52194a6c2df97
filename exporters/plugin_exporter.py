"""Site-wide plugin data exporter (grouped options plus plugin REST data)."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from classifiers.plugin_classifier import group_options_by_plugin
from file_utils import ensure_dir, write_json
from models import PluginDescriptor, utc_now_iso
from wp_client import WordPressApiError

CF7_SLUG = 'contact-form-7'
CF7_ENDPOINT = '~/contact-form-7/v1/contact-forms'


def is_contact_form_7(descriptor: PluginDescriptor) -> bool:
    return descriptor.slug == CF7_SLUG or (descriptor.namespace or '').startswith(CF7_SLUG)


def form_list(data: Any) -> List[Dict[str, Any]]:
    """Normalize the CF7 list response (bare list or ``contact_forms`` wrapper)."""
    if isinstance(data, dict):
        return data.get('contact_forms') or []
    return data or []


class PluginExporter:
    """
    Exports plugin-level data that is not attached to a post.

    Each plugin gets ``plugins/<slug>.json`` when it owns at least one site
    option or has REST data (Contact Form 7 forms). A failing plugin is
    logged and skipped; the others are still exported.
    """

    def __init__(self, client, logger: Optional[logging.Logger] = None):
        """
        Initialize the plugin exporter.

        Args:
            client: WordPressClient instance
            logger: Logger instance
        """
        self.client = client
        self.logger = logger or logging.getLogger('wp_content_sync.exporters.plugin_exporter')
        self.stats = {
            'plugins_exported': 0,
            'plugins_failed': 0,
            'options': 0,
            'items': 0
        }

    def export_contact_forms(self) -> List[Dict[str, Any]]:
        """
        Export Contact Form 7 forms with their full properties.

        Returns:
            Form documents
        """
        forms = []
        for summary in form_list(self.client.get_json(CF7_ENDPOINT)):
            full = self.client.get_json(f"{CF7_ENDPOINT}/{summary['id']}")
            properties = full.get('properties') or {}
            form_body = properties.get('form')
            if isinstance(form_body, dict):
                form_body = form_body.get('content')

            forms.append({
                'id': full.get('id'),
                'slug': full.get('slug'),
                'title': full.get('title'),
                'locale': full.get('locale'),
                'form': form_body or full.get('form'),
                'mail': properties.get('mail') or full.get('mail'),
                'mail_2': properties.get('mail_2') or full.get('mail_2'),
                'messages': properties.get('messages') or full.get('messages'),
                'additional_settings': properties.get('additional_settings') or full.get('additional_settings'),
            })
        return forms

    def export_rest_data(self, descriptor: PluginDescriptor) -> Dict[str, Any]:
        """Plugin-specific REST data to merge into the plugin file."""
        if is_contact_form_7(descriptor):
            forms = self.export_contact_forms()
            if forms:
                return {'forms': forms}
        return {}

    def export_all(
        self,
        descriptors: List[PluginDescriptor],
        options: Dict[str, Any],
        plugins_dir: Path
    ) -> List[Dict[str, Any]]:
        """
        Export every plugin that has site-wide data.

        Args:
            descriptors: Detected plugins
            options: Site options bag
            plugins_dir: Directory receiving ``<slug>.json`` files

        Returns:
            Manifest entries (slug, name, options_count, items_count)
        """
        classification = group_options_by_plugin(options, descriptors)
        exported = []

        for descriptor in descriptors:
            try:
                entry = self._export_plugin(descriptor, classification.groups, Path(plugins_dir))
            except (WordPressApiError, requests.RequestException, KeyError, ValueError) as e:
                self.logger.warning(f"Failed to export plugin data for {descriptor.slug}: {e}")
                self.stats['plugins_failed'] += 1
                continue

            if entry:
                exported.append(entry)

        return exported

    def _export_plugin(self, descriptor: PluginDescriptor, groups: Dict, plugins_dir: Path) -> Optional[Dict[str, Any]]:
        plugin_data: Dict[str, Any] = {
            'plugin': descriptor.slug,
            'name': descriptor.name,
            'version': descriptor.version,
            'export_date': utc_now_iso(),
        }

        group = groups.get(descriptor.group_name)
        plugin_options = dict(group.values) if group and group.descriptor.slug == descriptor.slug else {}
        if plugin_options:
            plugin_data['options'] = plugin_options

        rest_data = self.export_rest_data(descriptor)
        plugin_data.update(rest_data)
        items_count = len(rest_data.get('forms', []))

        if not plugin_options and not items_count:
            return None

        ensure_dir(plugins_dir)
        write_json(plugins_dir / f"{descriptor.slug}.json", plugin_data)

        self.stats['plugins_exported'] += 1
        self.stats['options'] += len(plugin_options)
        self.stats['items'] += items_count
        self.logger.info(
            f"Exported {descriptor.name}: {len(plugin_options)} option(s), {items_count} item(s)"
        )

        return {
            'slug': descriptor.slug,
            'name': descriptor.name,
            'options_count': len(plugin_options),
            'items_count': items_count
        }
