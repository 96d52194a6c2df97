"""Prefix-based classification of post meta and site options into plugin groups."""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models import ClassificationResult, MetadataGroup, PluginDescriptor

logger = logging.getLogger('wp_content_sync.classifiers.plugin_classifier')

# WordPress internal meta, never exported
RESERVED_PREFIXES = ('_edit_', '_wp_', '_oembed_', '_menu_item_', '_customize_', '_internal_')
RESERVED_KEYS = frozenset({'_thumbnail_id', '_encloseme', '_pingme', '_edit_lock', '_edit_last'})

AUTO_PREFIX_PATTERN = re.compile(r'^(_?[a-z0-9]+)_', re.IGNORECASE)
MIN_AUTO_PREFIX_LENGTH = 2

DROP_RESERVED = 'reserved'
DROP_EMPTY = 'empty'
DROP_UNCLAIMED = 'unclaimed'


def is_empty(value: Any) -> bool:
    """
    Check whether a value carries no information.

    ``None``, empty strings and empty collections are empty; ``0`` and
    ``False`` are explicit values and are kept.
    """
    if value is None:
        return True
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return False
    if isinstance(value, (str, bytes)):
        return len(value) == 0
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def has_meaningful_content(values: Dict[str, Any]) -> bool:
    """Check if a mapping has at least one non-empty value."""
    return any(not is_empty(value) for value in values.values())


def is_reserved_key(key: str) -> bool:
    """Check if a key is WordPress-internal meta."""
    return key in RESERVED_KEYS or key.startswith(RESERVED_PREFIXES)


def sort_by_specificity(descriptors: Iterable[PluginDescriptor]) -> List[PluginDescriptor]:
    """Order descriptors so longer (more specific) prefixes are tried first."""
    return sorted(descriptors, key=lambda descriptor: descriptor.longest_prefix, reverse=True)


def prefix_matches(key: str, prefix: str, underscore_led: bool = True) -> bool:
    """
    Check if ``key`` belongs to ``prefix``.

    Args:
        key: Meta or option key
        prefix: Candidate prefix
        underscore_led: Also accept ``_prefix`` / ``_prefix_`` (hidden meta)

    Returns:
        True on match
    """
    if key == prefix or key.startswith(prefix + '_') or key.startswith(prefix + '-'):
        return True
    if underscore_led and key.startswith('_' + prefix):
        return True
    return False


class PluginClassifier:
    """
    Partitions a flat key/value bag into per-plugin groups.

    Declared descriptors are matched first; leftover keys can be grouped by
    their leading token into auto-discovered descriptors, and keys that still
    look plugin-owned land in the remaining bucket. Every input key ends up in
    exactly one of: a group, ``remaining``, or ``dropped``.
    """

    def __init__(
        self,
        descriptors: Iterable[PluginDescriptor],
        skip_reserved: bool = True,
        match_underscore_led: bool = True,
        auto_discover: bool = True,
        collect_remaining: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the classifier.

        Args:
            descriptors: Known/detected plugins
            skip_reserved: Drop WordPress-internal keys
            match_underscore_led: Accept ``_prefix`` forms when matching
            auto_discover: Group unmatched keys by their leading token
            collect_remaining: Keep unmatched plugin-looking keys in ``remaining``
            logger: Logger instance
        """
        self.descriptors = sort_by_specificity(descriptors)
        self.skip_reserved = skip_reserved
        self.match_underscore_led = match_underscore_led
        self.auto_discover = auto_discover
        self.collect_remaining = collect_remaining
        self.logger = logger or logging.getLogger('wp_content_sync.classifiers.plugin_classifier')

    def match_descriptor(self, key: str) -> Optional[PluginDescriptor]:
        """Return the first descriptor (by specificity) claiming ``key``."""
        for descriptor in self.descriptors:
            for prefix in descriptor.prefixes:
                if prefix_matches(key, prefix, self.match_underscore_led):
                    return descriptor
        return None

    def classify(self, bag: Dict[str, Any]) -> ClassificationResult:
        """
        Classify a metadata or options bag.

        Args:
            bag: Flat key -> value mapping

        Returns:
            ClassificationResult with groups, remaining, dropped and discovered
        """
        result = ClassificationResult()
        unassigned: List[Tuple[str, Any]] = []

        for key, value in bag.items():
            if self.skip_reserved and is_reserved_key(key):
                result.dropped[key] = DROP_RESERVED
                continue
            if is_empty(value):
                result.dropped[key] = DROP_EMPTY
                continue

            descriptor = self.match_descriptor(key)
            if descriptor is None:
                unassigned.append((key, value))
                continue

            group = result.groups.get(descriptor.group_name)
            if group is None:
                group = MetadataGroup(descriptor=descriptor)
                result.groups[descriptor.group_name] = group
            group.values[key] = value

        if self.auto_discover:
            unassigned = self._discover_groups(unassigned, result)

        for key, value in unassigned:
            if self.collect_remaining and not key.startswith('_'):
                result.remaining[key] = value
            else:
                result.dropped[key] = DROP_UNCLAIMED

        self.logger.debug(
            f"Classified {len(bag)} keys: {len(result.groups)} group(s), "
            f"{len(result.remaining)} remaining, {len(result.dropped)} dropped"
        )
        return result

    def _discover_groups(
        self,
        unassigned: List[Tuple[str, Any]],
        result: ClassificationResult
    ) -> List[Tuple[str, Any]]:
        """Group leftover keys by leading token; return keys still unassigned."""
        buckets: Dict[str, Dict[str, Any]] = {}
        leftover = []

        for key, value in unassigned:
            match = AUTO_PREFIX_PATTERN.match(key)
            token = match.group(1) if match else None
            if not token or len(token) < MIN_AUTO_PREFIX_LENGTH:
                leftover.append((key, value))
                continue
            buckets.setdefault(token, {})[key] = value

        for token, values in buckets.items():
            if not has_meaningful_content(values):
                leftover.extend(values.items())
                continue

            name = token.lstrip('_').lower().replace('_', '-')
            existing = result.groups.get(name)
            if existing is not None and not existing.auto_discovered:
                name = f"{name}-auto"
                existing = result.groups.get(name)

            if existing is not None:
                existing.values.update(values)
                continue

            descriptor = PluginDescriptor(
                slug=name,
                prefixes=[token.lower()],
                name=name,
                auto_discovered=True
            )
            result.groups[name] = MetadataGroup(descriptor=descriptor, values=dict(values))
            result.discovered.append(descriptor)
            self.logger.debug(f"Auto-discovered plugin group '{name}' ({len(values)} keys)")

        return leftover


def group_meta_by_plugin(
    meta: Dict[str, Any],
    descriptors: Iterable[PluginDescriptor]
) -> ClassificationResult:
    """Classify a post's meta bag with every heuristic enabled."""
    return PluginClassifier(descriptors).classify(meta)


def group_options_by_plugin(
    options: Dict[str, Any],
    descriptors: Iterable[PluginDescriptor]
) -> ClassificationResult:
    """
    Classify site options against declared plugins only.

    Core settings share no plugin prefix, so nothing is auto-discovered and
    unmatched options are dropped rather than kept as remaining.
    """
    classifier = PluginClassifier(
        descriptors,
        match_underscore_led=False,
        auto_discover=False,
        collect_remaining=False
    )
    return classifier.classify(options)
