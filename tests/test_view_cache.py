"""Tests for the published view cache and the worker that fills it."""

from unittest.mock import patch

import pytest
import redis

from production_engine.api.routes.dashboard import DashboardResponse
from production_engine.api.routes.finance import FinanceResponse
from production_engine.config import Settings
from production_engine.domain.snapshot import Snapshot
from production_engine.jobs.tasks import recompute_views_task
from production_engine.services.aggregation import build_dashboard
from production_engine.services.view_cache import ViewCache, view_cache_from_settings


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("connection refused")


class TestViewCache:
    def test_publish_then_latest(self, view_cache, agency_dashboard) -> None:
        assert view_cache.publish("dashboard", agency_dashboard) is True

        cached = view_cache.latest("dashboard", DashboardResponse)

        assert cached is not None
        assert cached.generated_at == agency_dashboard.generated_at
        assert [e.name for e in cached.editors] == ["Ana"]
        assert view_cache.client.ttls["production-engine:view:dashboard"] == 300

    def test_missing_view(self, view_cache) -> None:
        assert view_cache.latest("finance", FinanceResponse) is None

    def test_unparseable_copy_is_a_miss(self, view_cache) -> None:
        view_cache.client.set(view_cache.key("dashboard"), b'{"generated_at": "yesterday"}')

        assert view_cache.latest("dashboard", DashboardResponse) is None

    def test_redis_failures_do_not_raise(self, agency_dashboard) -> None:
        cache = ViewCache(BrokenRedis(), ttl_seconds=60)

        assert cache.publish("dashboard", agency_dashboard) is False
        assert cache.latest("dashboard", DashboardResponse) is None

    def test_disabled_by_settings(self) -> None:
        assert view_cache_from_settings(Settings(view_cache_enabled=False)) is None

    def test_enabled_by_settings(self) -> None:
        cache = view_cache_from_settings(
            Settings(view_cache_enabled=True, view_cache_ttl_seconds=42)
        )

        assert cache is not None
        assert cache.ttl_seconds == 42


@pytest.fixture
def agency_dashboard(make_member, make_stat, now, config):
    editor = make_member(full_name="Ana")
    snapshot = Snapshot(
        taken_at=now,
        team_members=[editor],
        editor_stats=[make_stat(user_id=editor.user_id, xp=200)],
    )
    return build_dashboard(snapshot, config)


@pytest.mark.usefixtures("db")
def test_recompute_task_publishes_rebuilt_views(view_cache) -> None:
    """Test the worker writes every rebuilt view where the API reads it."""
    with patch("production_engine.jobs.tasks.view_cache_from_settings", return_value=view_cache):
        result = recompute_views_task.apply(args=["videos"]).get()

    assert result["success"] is True
    assert [v["view"] for v in result["views"]] == ["dashboard", "finance", "late_check"]
    assert all(v["cached"] for v in result["views"])
    assert view_cache.latest("dashboard", DashboardResponse) is not None
    assert view_cache.latest("finance", FinanceResponse) is not None
