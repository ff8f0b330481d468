"""Engine services: pure computations and their write-back collaborators."""

from production_engine.services.aggregation import DashboardView, build_dashboard
from production_engine.services.costing import FinanceReport, build_finance_report
from production_engine.services.late_videos import LateCheckReport, LateVideoService
from production_engine.services.lifecycle import evaluate, is_late
from production_engine.services.performance import score_editor, score_editors
from production_engine.services.recompute import CollectionChanged, RecomputeDispatcher

__all__ = [
    "CollectionChanged",
    "DashboardView",
    "FinanceReport",
    "LateCheckReport",
    "LateVideoService",
    "RecomputeDispatcher",
    "build_dashboard",
    "build_finance_report",
    "evaluate",
    "is_late",
    "score_editor",
    "score_editors",
]
