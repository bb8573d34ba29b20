from reqstats.middleware.stats import StatsMiddleware

__all__ = ["StatsMiddleware"]
