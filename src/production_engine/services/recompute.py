"""Full recomputation of derived views when a record collection changes."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from production_engine.domain.engine_config import EngineConfig
from production_engine.domain.enums import Collection
from production_engine.domain.snapshot import Snapshot
from production_engine.logging import get_logger
from production_engine.services.aggregation import build_dashboard
from production_engine.services.costing import build_finance_report
from production_engine.services.late_videos import LateVideoService
from production_engine.services.lifecycle import detect_late_transitions

logger = get_logger(__name__)


class View(StrEnum):
    """Derived views published to display collaborators."""

    DASHBOARD = "dashboard"
    FINANCE = "finance"
    LATE_CHECK = "late_check"


C = Collection

# Collection -> views that read it
VIEW_DEPENDENCIES: dict[Collection, frozenset[View]] = {
    C.PROJECTS: frozenset({View.DASHBOARD, View.FINANCE}),
    C.VIDEOS: frozenset({View.DASHBOARD, View.FINANCE, View.LATE_CHECK}),
    C.VIDEO_DELIVERIES: frozenset({View.DASHBOARD}),
    C.EDITOR_STATS: frozenset({View.DASHBOARD}),
    C.EDITOR_QUESTIONS: frozenset({View.DASHBOARD}),
    C.TEAM_MEMBERS: frozenset({View.DASHBOARD, View.FINANCE}),
    C.CLIENTS: frozenset({View.FINANCE}),
    C.PAYMENTS: frozenset({View.FINANCE}),
    C.EXPENSES: frozenset({View.FINANCE}),
    C.DESIGN_TASKS: frozenset({View.FINANCE}),
    C.DESIGN_DELIVERIES: frozenset({View.FINANCE}),
    C.DESIGN_FEEDBACK: frozenset({View.FINANCE}),
}

SnapshotLoader = Callable[[datetime], Snapshot]
Publisher = Callable[[str, Any], None]


@dataclass(frozen=True)
class CollectionChanged:
    """Change notification for one record collection."""

    collection: Collection
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_name(cls, name: str) -> "CollectionChanged":
        """Parse an external collection name; unknown names raise ValueError."""
        return cls(collection=Collection(name))


def affected_views(collection: Collection) -> list[View]:
    """Views to rebuild for a change, in a fixed order."""
    views = VIEW_DEPENDENCIES[collection]
    return [view for view in View if view in views]


class RecomputeDispatcher:
    """Reloads a snapshot and re-runs the affected builders in full.

    Holds no state between dispatches: the same snapshot always publishes
    the same results.
    """

    def __init__(
        self,
        loader: SnapshotLoader,
        publish: Publisher,
        config: EngineConfig,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        late_service: LateVideoService | None = None,
    ) -> None:
        self.loader = loader
        self.publish = publish
        self.config = config
        self.clock = clock
        self.late_service = late_service

    def build(self, view: View, snapshot: Snapshot) -> Any:
        if view == View.DASHBOARD:
            return build_dashboard(snapshot, self.config)
        if view == View.FINANCE:
            return build_finance_report(snapshot, self.config)
        if self.late_service is not None:
            return self.late_service.run(snapshot)
        return detect_late_transitions(snapshot.videos, snapshot.taken_at, self.config)

    def dispatch(self, event: CollectionChanged) -> list[View]:
        """Recompute and publish every view the changed collection feeds."""
        views = affected_views(event.collection)
        snapshot = self.loader(self.clock())

        for view in views:
            self.publish(view.value, self.build(view, snapshot))

        logger.info(
            "recompute_completed",
            collection=event.collection.value,
            views=[v.value for v in views],
            partial=snapshot.partial,
        )
        return views
