"""
Orchestration package for coordinating sync runs.

This package provides the layer that sequences an export (site -> files) or
import (files -> site) run and aggregates per-item results into a report.
"""

from .sync_orchestrator import SetupError, SyncOrchestrator
from .sync_report import SyncReport

__all__ = [
    'SetupError',
    'SyncOrchestrator',
    'SyncReport'
]
