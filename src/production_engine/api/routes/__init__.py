"""API route modules."""

from production_engine.api.routes import dashboard, events, finance, health

__all__ = ["dashboard", "events", "finance", "health"]
