"""
Service layer for the work clock ledger.
"""

from .clock_controller import ClockController
from .clock_service import ClockService, ClockResult
from .pair_projector import project, EntryPair, DailyRecord, format_duration
from .legacy_reconciler import reconcile, ActiveChange, ReconciledLog
from .legacy_import import read_legacy_file, import_legacy_file, LegacyImportResult
from .report_service import WorkingTimeReport

__all__ = [
    'ClockController',
    'ClockService',
    'ClockResult',
    'project',
    'EntryPair',
    'DailyRecord',
    'format_duration',
    'reconcile',
    'ActiveChange',
    'ReconciledLog',
    'read_legacy_file',
    'import_legacy_file',
    'LegacyImportResult',
    'WorkingTimeReport',
]
