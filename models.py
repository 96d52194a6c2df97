"""Data models for the WordPress content sync pipeline."""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from bs4 import BeautifulSoup
from dateutil.parser import isoparse

from file_utils import read_json, write_json

logger = logging.getLogger('wp_content_sync')


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class ContentType(Enum):
    """WordPress content collections handled by the sync engine."""
    POSTS = "posts"
    PAGES = "pages"

    @classmethod
    def selected(cls, content_type: str) -> List['ContentType']:
        """Expand a ``posts|pages|all`` selector into content types."""
        if content_type == 'all':
            return [cls.POSTS, cls.PAGES]
        return [cls(content_type)]


class ImportMode(Enum):
    """Declared reconciliation policy for an import run."""
    CREATE = "create"
    UPDATE = "update"
    SYNC = "sync"


class ActionType(Enum):
    """Outcome of reconciling one local item against the remote site."""
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


def _text_field(value: Any) -> str:
    """Pick ``raw`` over ``rendered`` from a REST text field."""
    if isinstance(value, dict):
        if value.get('raw') is not None:
            return value['raw']
        return value.get('rendered') or ''
    return value or ''


def _plain_text(value: Any) -> str:
    """Like ``_text_field`` but strips markup from rendered-only values."""
    if isinstance(value, dict) and value.get('raw') is None and value.get('rendered'):
        return BeautifulSoup(value['rendered'], 'lxml').get_text().strip()
    return _text_field(value)


@dataclass
class ContentItem:
    """Represents one WordPress post or page."""

    id: int
    slug: str
    content_type: ContentType
    title: str = ''
    status: str = 'publish'
    content: str = ''
    excerpt: str = ''
    date: Optional[str] = None
    date_gmt: Optional[str] = None
    modified: Optional[str] = None
    modified_gmt: Optional[str] = None
    author: Optional[int] = None
    featured_media: Optional[int] = None
    template: str = ''
    link: Optional[str] = None
    # posts
    categories: List[int] = field(default_factory=list)
    tags: List[int] = field(default_factory=list)
    format: str = 'standard'
    sticky: bool = False
    # pages
    parent: int = 0
    menu_order: int = 0
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def safe_slug(self) -> str:
        """Slug, or an id-based stand-in for items without one."""
        return self.slug or f"id-{self.id}"

    @classmethod
    def from_api(cls, data: Dict[str, Any], content_type: ContentType) -> 'ContentItem':
        """
        Build an item from a REST API payload.

        Args:
            data: Post or page JSON (``context=edit`` preferred)
            content_type: Collection the payload came from

        Returns:
            ContentItem instance
        """
        meta = data.get('all_meta')
        if not isinstance(meta, dict):
            meta = data.get('meta')
        if not isinstance(meta, dict):
            meta = {}

        return cls(
            id=data.get('id', 0),
            slug=data.get('slug') or '',
            content_type=content_type,
            title=_plain_text(data.get('title')),
            status=data.get('status', 'publish'),
            content=_text_field(data.get('content')),
            excerpt=_plain_text(data.get('excerpt')),
            date=data.get('date'),
            date_gmt=data.get('date_gmt'),
            modified=data.get('modified'),
            modified_gmt=data.get('modified_gmt'),
            author=data.get('author'),
            featured_media=data.get('featured_media'),
            template=data.get('template') or '',
            link=data.get('link'),
            categories=data.get('categories') or [],
            tags=data.get('tags') or [],
            format=data.get('format') or 'standard',
            sticky=bool(data.get('sticky', False)),
            parent=data.get('parent') or 0,
            menu_order=data.get('menu_order') or 0,
            meta=dict(meta)
        )

    def to_metadata(self) -> Dict[str, Any]:
        """Serialize the exported ``metadata.json`` document."""
        metadata = {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'status': self.status,
            'date': self.date,
            'date_gmt': self.date_gmt,
            'modified': self.modified,
            'modified_gmt': self.modified_gmt,
            'author': self.author,
            'excerpt': self.excerpt,
            'featured_media': self.featured_media,
            'template': self.template,
            'type': 'post' if self.content_type == ContentType.POSTS else 'page',
            'link': self.link,
        }

        if self.content_type == ContentType.POSTS:
            metadata['categories'] = self.categories
            metadata['tags'] = self.tags
            metadata['format'] = self.format
            metadata['sticky'] = self.sticky
        else:
            metadata['parent'] = self.parent
            metadata['menu_order'] = self.menu_order

        return metadata

    @classmethod
    def from_metadata(
        cls,
        metadata: Dict[str, Any],
        content_type: ContentType,
        content: str = ''
    ) -> 'ContentItem':
        """Rebuild an item from an exported ``metadata.json`` document."""
        return cls(
            id=metadata.get('id', 0),
            slug=metadata.get('slug') or '',
            content_type=content_type,
            title=metadata.get('title', ''),
            status=metadata.get('status', 'publish'),
            content=content,
            excerpt=metadata.get('excerpt') or '',
            date=metadata.get('date'),
            date_gmt=metadata.get('date_gmt'),
            modified=metadata.get('modified'),
            modified_gmt=metadata.get('modified_gmt'),
            author=metadata.get('author'),
            featured_media=metadata.get('featured_media'),
            template=metadata.get('template') or '',
            link=metadata.get('link'),
            categories=metadata.get('categories') or [],
            tags=metadata.get('tags') or [],
            format=metadata.get('format') or 'standard',
            sticky=bool(metadata.get('sticky', False)),
            parent=metadata.get('parent') or 0,
            menu_order=metadata.get('menu_order') or 0
        )

    def to_api_payload(self) -> Dict[str, Any]:
        """Build the create/update request body."""
        payload = {
            'title': self.title,
            'content': self.content,
            'status': self.status,
            'slug': self.slug,
            'excerpt': self.excerpt,
            'template': self.template,
        }

        if self.content_type == ContentType.POSTS:
            if self.categories:
                payload['categories'] = self.categories
            if self.tags:
                payload['tags'] = self.tags
            if self.format:
                payload['format'] = self.format
            payload['sticky'] = self.sticky
        else:
            if self.parent:
                payload['parent'] = self.parent
            if self.menu_order:
                payload['menu_order'] = self.menu_order

        return payload


@dataclass
class PluginDescriptor:
    """A detected or declared plugin and the meta/option key prefixes it owns."""

    slug: str
    prefixes: List[str]
    name: Optional[str] = None
    version: Optional[str] = None
    text_domain: Optional[str] = None
    namespace: Optional[str] = None
    auto_discovered: bool = False

    def __post_init__(self) -> None:
        """Normalize prefixes: strip separators, drop blanks and duplicates."""
        normalized = []
        for prefix in self.prefixes:
            cleaned = prefix.rstrip('_-')
            if cleaned and cleaned not in normalized:
                normalized.append(cleaned)

        if not normalized:
            raise ValueError(f"Plugin descriptor '{self.slug}' needs at least one prefix")

        self.prefixes = normalized
        if not self.name:
            self.name = self.slug

    @property
    def group_name(self) -> str:
        """Name of the metadata group (and file) this descriptor produces."""
        return self.prefixes[0].lstrip('_').lower().replace('_', '-')

    @property
    def longest_prefix(self) -> int:
        """Length of the most specific candidate prefix."""
        return max(len(prefix) for prefix in self.prefixes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize descriptor to dictionary."""
        return {
            'slug': self.slug,
            'name': self.name,
            'version': self.version,
            'text_domain': self.text_domain,
            'namespace': self.namespace,
            'prefixes': list(self.prefixes),
            'auto_discovered': self.auto_discovered
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PluginDescriptor':
        """Deserialize from dictionary."""
        return cls(
            slug=data['slug'],
            prefixes=data.get('prefixes') or [data['slug'].replace('-', '_')],
            name=data.get('name'),
            version=data.get('version'),
            text_domain=data.get('text_domain'),
            namespace=data.get('namespace'),
            auto_discovered=data.get('auto_discovered', False)
        )


@dataclass
class MetadataGroup:
    """Keys of one metadata bag claimed by a single plugin."""

    descriptor: PluginDescriptor
    values: Dict[str, Any] = field(default_factory=dict)

    @property
    def auto_discovered(self) -> bool:
        return self.descriptor.auto_discovered


@dataclass
class ClassificationResult:
    """Partition of a metadata bag into plugin groups, remainder, and dropped keys."""

    groups: Dict[str, MetadataGroup] = field(default_factory=dict)
    remaining: Dict[str, Any] = field(default_factory=dict)
    dropped: Dict[str, str] = field(default_factory=dict)  # key -> reason
    discovered: List[PluginDescriptor] = field(default_factory=list)

    def group_for(self, key: str) -> Optional[str]:
        """Name of the group holding ``key``, if any."""
        for name, group in self.groups.items():
            if key in group.values:
                return name
        return None

    def assigned_keys(self) -> List[str]:
        """All keys that ended up in a named group."""
        keys = []
        for group in self.groups.values():
            keys.extend(group.values)
        return keys


@dataclass
class MediaAsset:
    """One discovered asset reference and what happened to it."""

    source_url: str
    filename: str
    local_path: Optional[Path] = None
    status: str = 'pending'  # "pending", "downloaded", "cached", "failed"
    error: Optional[str] = None


class MediaMapping:
    """
    Table linking assets of one content item across systems.

    Export direction maps remote URL -> local filename; import direction maps
    local filename -> new remote URL. The mapping is passed into and returned
    from each pipeline call, never shared between items.
    """

    EXPORT = 'export'
    IMPORT = 'import'

    def __init__(
        self,
        entries: Optional[Dict[str, str]] = None,
        direction: str = EXPORT,
        target: Optional[str] = None
    ):
        if direction not in (self.EXPORT, self.IMPORT):
            raise ValueError(f"Unknown mapping direction: {direction}")
        self.direction = direction
        self.target = target
        self._entries: 'OrderedDict[str, str]' = OrderedDict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._entries[key] = value

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, MediaMapping):
            return NotImplemented
        return self.direction == other.direction and dict(self._entries) == dict(other._entries)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._entries.get(key, default)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._entries.items())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    def inverse(self) -> 'MediaMapping':
        """Swap keys and values (URL->file becomes file->URL and back)."""
        direction = self.IMPORT if self.direction == self.EXPORT else self.EXPORT
        return MediaMapping(
            {value: key for key, value in self._entries.items()},
            direction=direction,
            target=self.target
        )

    def save(self, file_path: Union[str, Path]) -> None:
        """
        Persist the mapping as a JSON side file.

        Export mappings are written as a flat ``{url: filename}`` object;
        import mappings carry the target site so they are only reused
        against the same destination.
        """
        if self.direction == self.EXPORT:
            write_json(file_path, self.to_dict())
        else:
            write_json(file_path, {'target': self.target, 'uploads': self.to_dict()})

    @classmethod
    def load(
        cls,
        file_path: Union[str, Path],
        direction: str = EXPORT,
        target: Optional[str] = None
    ) -> 'MediaMapping':
        """
        Load a mapping side file; a missing file yields an empty mapping.

        For import mappings, a file written for a different ``target`` is
        ignored.
        """
        path = Path(file_path)
        if not path.exists():
            return cls(direction=direction, target=target)

        data = read_json(path)
        if direction == cls.EXPORT:
            return cls(data, direction=direction)

        stored_target = data.get('target')
        if target and stored_target and stored_target.rstrip('/') != target.rstrip('/'):
            logger.debug(f"Ignoring upload mapping for other target {stored_target}: {path}")
            return cls(direction=direction, target=target)
        return cls(data.get('uploads', {}), direction=direction, target=target or stored_target)


@dataclass
class ImportAction:
    """Reconciliation decision for one item."""

    action: ActionType
    reason: Optional[str] = None

    @property
    def is_skip(self) -> bool:
        return self.action == ActionType.SKIP


@dataclass
class ItemResult:
    """Per-item outcome of an export or import."""

    slug: str
    content_type: ContentType
    action: Optional[str] = None  # "export", "create", "update", "skip"
    item_id: Optional[int] = None
    reason: Optional[str] = None
    dry_run: bool = False
    extensions: List[str] = field(default_factory=list)
    media_transferred: int = 0
    media_failed: int = 0
    meta_fields: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return {
            'slug': self.slug,
            'content_type': self.content_type.value,
            'action': self.action,
            'item_id': self.item_id,
            'reason': self.reason,
            'dry_run': self.dry_run,
            'extensions': self.extensions,
            'media_transferred': self.media_transferred,
            'media_failed': self.media_failed,
            'meta_fields': self.meta_fields,
            'warnings': self.warnings,
            'error': self.error
        }


@dataclass
class ExportManifest:
    """Top-level summary of one export run."""

    source_url: str
    content_type: str = 'all'
    post_status: str = 'publish'
    export_date: str = field(default_factory=utc_now_iso)
    meta_support: str = 'none'
    plugin_source: str = 'none'
    installed_plugins: List[PluginDescriptor] = field(default_factory=list)
    items: Dict[str, List[Dict[str, Any]]] = field(
        default_factory=lambda: {ContentType.POSTS.value: [], ContentType.PAGES.value: []}
    )
    detected_extensions: List[str] = field(default_factory=list)
    exported_plugins: List[Dict[str, Any]] = field(default_factory=list)

    def add_item(self, result: ItemResult, directory: str) -> None:
        """Record an exported item."""
        self.items.setdefault(result.content_type.value, []).append({
            'slug': result.slug,
            'id': result.item_id,
            'dir': directory,
            'extensions': list(result.extensions)
        })
        for extension in result.extensions:
            if extension not in self.detected_extensions:
                self.detected_extensions.append(extension)

    def item_dirs(self, content_type: ContentType) -> List[str]:
        """Directory names of exported items of one type, in export order."""
        return [entry['dir'] for entry in self.items.get(content_type.value, [])]

    @property
    def exported_at(self) -> Optional[datetime]:
        """Parsed export timestamp."""
        try:
            return isoparse(self.export_date)
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize manifest to dictionary."""
        data = {
            'export_date': self.export_date,
            'source_url': self.source_url,
            'content_type': self.content_type,
            'post_status': self.post_status,
            'meta_support': self.meta_support,
            'plugin_source': self.plugin_source,
            'installed_plugins': [plugin.to_dict() for plugin in self.installed_plugins],
            'detected_extensions': list(self.detected_extensions),
            'exported_plugins': list(self.exported_plugins),
        }
        for content_type in ContentType:
            data[content_type.value] = list(self.items.get(content_type.value, []))
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExportManifest':
        """Deserialize from dictionary."""
        return cls(
            source_url=data.get('source_url', ''),
            content_type=data.get('content_type', 'all'),
            post_status=data.get('post_status', 'publish'),
            export_date=data.get('export_date') or utc_now_iso(),
            meta_support=data.get('meta_support', 'none'),
            plugin_source=data.get('plugin_source', 'none'),
            installed_plugins=[
                PluginDescriptor.from_dict(plugin) for plugin in data.get('installed_plugins', [])
            ],
            items={content_type.value: list(data.get(content_type.value, [])) for content_type in ContentType},
            detected_extensions=list(data.get('detected_extensions', [])),
            exported_plugins=list(data.get('exported_plugins', []))
        )

    def save(self, file_path: Union[str, Path]) -> None:
        write_json(file_path, self.to_dict())

    @classmethod
    def load(cls, file_path: Union[str, Path]) -> 'ExportManifest':
        return cls.from_dict(read_json(file_path))


__all__ = [
    'ContentType',
    'ImportMode',
    'ActionType',
    'ContentItem',
    'PluginDescriptor',
    'MetadataGroup',
    'ClassificationResult',
    'MediaAsset',
    'MediaMapping',
    'ImportAction',
    'ItemResult',
    'ExportManifest',
    'utc_now_iso',
]
