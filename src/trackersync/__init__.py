"""trackersync - keep two issue trackers in step.

High-level public API:

from trackersync import load_config, SyncEngine, build_source

cfg = load_config('trackersync.yaml')
first, second = (build_source(s) for s in cfg.trackers)
report = SyncEngine(first, second).run()
print(report.counts())

One tracker is the primary (it assigns identifiers); issues are matched on
their description. The CLI (``trackersync sync``) wraps exactly this.
"""

from __future__ import annotations

from .config import SyncConfig, load_config
from .errors import ConfigError, TrackerAPIError, TrackerSyncError, UnsupportedFieldError
from .models import Issue, IssueField, IssueState, Side
from .orchestrator import SyncEngine, SyncPhase, SyncReport, run_sync
from .reconcile import Decision, DecisionKind, IssueReconciler, reconcile
from .registry import build_source

# Version constant (keep in sync with pyproject)
__version__ = "0.3.0"

__all__ = [
    "ConfigError",
    "Decision",
    "DecisionKind",
    "Issue",
    "IssueField",
    "IssueReconciler",
    "IssueState",
    "Side",
    "SyncConfig",
    "SyncEngine",
    "SyncPhase",
    "SyncReport",
    "TrackerAPIError",
    "TrackerSyncError",
    "UnsupportedFieldError",
    "__version__",
    "build_source",
    "load_config",
    "reconcile",
    "run_sync",
]
