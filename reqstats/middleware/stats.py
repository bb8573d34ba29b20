"""Stats middleware: count every HTTP request by status code and time it; log one line per request."""
import logging

from starlette.types import ASGIApp, Receive, Scope, Send

from reqstats.monitoring.collector import Collector

logger = logging.getLogger(__name__)

# Recorded when the app raises before any response has started.
ERROR_STATUS = 500


def _client_ip(scope: Scope) -> str:
    for name, value in scope.get("headers") or []:
        if name == b"x-forwarded-for":
            return value.decode("latin-1").split(",")[0].strip()
    client = scope.get("client")
    return client[0] if client else ""


class StatsMiddleware:
    """
    Pure ASGI middleware reporting each HTTP request to a Collector. Other scope types pass through.
    Without an explicit collector, the one on ``app.state.stats`` (set in the app lifespan) is used;
    requests arriving while no collector is available are passed through uncounted.
    """

    def __init__(self, app: ASGIApp, collector: Collector | None = None):
        self.app = app
        self.collector = collector

    def _resolve(self, scope: Scope) -> Collector | None:
        if self.collector is not None:
            return self.collector
        owner = scope.get("app")
        return getattr(owner.state, "stats", None) if owner is not None else None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        collector = self._resolve(scope) if scope["type"] == "http" else None
        if collector is None:
            await self.app(scope, receive, send)
            return

        start, recorder = collector.begin(send)
        try:
            await self.app(scope, receive, recorder)
        except Exception:
            status = recorder.status if recorder.response_started else ERROR_STATUS
            collector.end_with_status(start, status)
            logger.exception(
                "telemetry request_failed method=%s path=%s status=%s",
                scope.get("method", ""),
                scope.get("path", ""),
                status,
            )
            raise

        elapsed = collector.end(start, recorder)
        logger.info(
            "request method=%s path=%s status=%s duration_ms=%.1f client=%s",
            scope.get("method", ""),
            scope.get("path", ""),
            recorder.status,
            elapsed * 1000,
            _client_ip(scope),
        )
