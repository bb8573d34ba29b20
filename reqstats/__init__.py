"""In-process HTTP request stats: ASGI middleware plus a thread-safe collector."""
from reqstats.middleware import StatsMiddleware
from reqstats.monitoring import Collector, Recorder, Report

__all__ = ["Collector", "Recorder", "Report", "StatsMiddleware"]
