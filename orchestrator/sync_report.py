"""
Sync report for aggregating per-item results into an end-of-run summary.

The report collects ItemResult records from an export or import run and
formats them for console display and JSON export.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

from models import ContentType, ItemResult, utc_now_iso

logger = logging.getLogger('wp_content_sync.orchestrator.sync_report')

EXPORT = 'export'
IMPORT = 'import'


class SyncReport:
    """Aggregates the outcome of one export or import run."""

    def __init__(self, direction: str, dry_run: bool = False, logger: Optional[logging.Logger] = None):
        """
        Initialize sync report.

        Args:
            direction: "export" or "import"
            dry_run: Whether the run made no changes
            logger: Optional logger instance
        """
        if direction not in (EXPORT, IMPORT):
            raise ValueError(f"Unknown report direction: {direction}")

        self.direction = direction
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('wp_content_sync.orchestrator.sync_report')
        self.started_at = time.time()
        self.finished_at: Optional[float] = None
        self.results: List[ItemResult] = []
        self.plugins: Dict[str, Dict[str, Any]] = {}
        self.meta_support: Optional[str] = None
        self.plugin_source: Optional[str] = None

    def add_result(self, result: ItemResult) -> None:
        """Record one item outcome."""
        self.results.append(result)

    def add_plugin(self, slug: str, name: str, options: int = 0, items: int = 0, error: Optional[str] = None) -> None:
        """Record site-wide plugin data handled for ``slug``."""
        self.plugins[slug] = {'name': name, 'options': options, 'items': items, 'error': error}

    def finish(self) -> 'SyncReport':
        self.finished_at = time.time()
        return self

    @property
    def duration(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    def counts(self, content_type: ContentType) -> Dict[str, int]:
        """
        Per-type counters.

        Returns:
            ``exported``/``failed`` for exports; ``created``/``updated``/
            ``skipped``/``failed`` for imports
        """
        results = [result for result in self.results if result.content_type == content_type]
        failed = sum(1 for result in results if not result.succeeded)

        if self.direction == EXPORT:
            return {'exported': len(results) - failed, 'failed': failed}

        counts = {'created': 0, 'updated': 0, 'skipped': 0, 'failed': failed}
        for result in results:
            if not result.succeeded:
                continue
            if result.action == 'create':
                counts['created'] += 1
            elif result.action == 'update':
                counts['updated'] += 1
            else:
                counts['skipped'] += 1
        return counts

    @property
    def media_transferred(self) -> int:
        return sum(result.media_transferred for result in self.results)

    @property
    def media_failed(self) -> int:
        return sum(result.media_failed for result in self.results)

    @property
    def failed(self) -> List[ItemResult]:
        return [result for result in self.results if not result.succeeded]

    @property
    def warnings(self) -> List[str]:
        warnings = []
        for result in self.results:
            for warning in result.warnings:
                warnings.append(f"{result.content_type.value}/{result.slug}: {warning}")
        return warnings

    def extension_counts(self) -> Dict[str, int]:
        """Number of items carrying each plugin group, in first-seen order."""
        counts: Dict[str, int] = {}
        for result in self.results:
            for extension in result.extensions:
                counts[extension] = counts.get(extension, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Serialize report to dictionary."""
        return {
            'direction': self.direction,
            'dry_run': self.dry_run,
            'timestamp': utc_now_iso(),
            'duration_seconds': round(self.duration, 2),
            'meta_support': self.meta_support,
            'plugin_source': self.plugin_source,
            'summary': {content_type.value: self.counts(content_type) for content_type in ContentType},
            'media': {'transferred': self.media_transferred, 'failed': self.media_failed},
            'extensions': self.extension_counts(),
            'plugins': self.plugins,
            'items': [result.to_dict() for result in self.results],
        }

    def format_console_report(self) -> str:
        """Format the summary block for console display."""
        lines = []
        separator = "=" * 40
        title = "Export Summary" if self.direction == EXPORT else "Import Summary"
        if self.dry_run:
            title += " (dry run)"

        lines.append(separator)
        lines.append(title)
        lines.append(separator)

        for content_type in ContentType:
            counts = self.counts(content_type)
            lines.append(f"  {content_type.value.capitalize()}:")
            for label, value in counts.items():
                lines.append(f"    {label.capitalize() + ':':<9}{value}")

        media_label = 'downloaded' if self.direction == EXPORT else 'uploaded'
        if self.dry_run and self.direction == IMPORT:
            media_label = 'to upload'
        lines.append(f"  Media {media_label}: {self.media_transferred}")
        if self.media_failed:
            lines.append(f"  Media failed: {self.media_failed}")

        if self.plugins:
            lines.append("  Global Plugin Data:")
            for info in self.plugins.values():
                details = []
                if info['options']:
                    details.append(f"{info['options']} options")
                if info['items']:
                    details.append(f"{info['items']} items")
                if info['error']:
                    details.append(f"error: {info['error']}")
                lines.append(f"    {info['name']}: {', '.join(details)}")

        extensions = self.extension_counts()
        if extensions:
            lines.append("  Per-Content Plugin Data:")
            for name, count in extensions.items():
                lines.append(f"    {name}: {count} item(s)")

        if self.failed:
            lines.append("  Failures:")
            for result in self.failed:
                lines.append(f"    {result.content_type.value}/{result.slug}: {result.error}")

        lines.append(f"  Duration: {self.duration:.1f}s")
        lines.append(separator)
        return "\n".join(lines)

    def log_summary(self) -> None:
        """Write the end-of-run summary through the logger."""
        log_method = self.logger.warning if self.failed else self.logger.info
        for line in self.format_console_report().splitlines():
            log_method(line)
        for warning in self.warnings:
            self.logger.warning(warning)

    def export_json_report(self, filepath: str) -> None:
        """
        Write the report as JSON.

        Args:
            filepath: Output file path
        """
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        self.logger.info(f"Report written to {filepath}")
