"""Shared utilities."""

from production_engine.utils.async_utils import run_async
from production_engine.utils.rounding import round_half_up

__all__ = ["round_half_up", "run_async"]
