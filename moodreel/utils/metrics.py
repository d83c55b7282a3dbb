"""Prometheus metrics for the relay and catalog endpoints."""

from collections import defaultdict
from dataclasses import dataclass, field

from starlette.types import ASGIApp, Message, Receive, Scope, Send


@dataclass
class _Metric:
    name: str
    help: str
    labels: tuple[str, ...] = ()

    def _key(self, labels: dict[str, str]) -> tuple:
        return tuple(labels.get(label, "") for label in self.labels)

    def _label_str(self, key: tuple) -> str:
        return ",".join(f'{label}="{value}"' for label, value in zip(self.labels, key))


@dataclass
class Counter(_Metric):
    """Monotonic counter."""

    _values: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        self._values[self._key(labels)] += amount

    def get(self, **labels: str) -> float:
        return self._values[self._key(labels)]


@dataclass
class Gauge(_Metric):
    """Value that goes up and down."""

    _values: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        self._values[self._key(labels)] += amount

    def dec(self, amount: float = 1.0, **labels: str) -> None:
        self._values[self._key(labels)] -= amount

    def get(self, **labels: str) -> float:
        return self._values[self._key(labels)]


@dataclass
class Histogram(_Metric):
    """Histogram with fixed buckets (cumulative on export)."""

    buckets: tuple[float, ...] = (0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)
    _counts: dict[tuple, dict[float, int]] = field(
        default_factory=lambda: defaultdict(lambda: defaultdict(int))
    )
    _sums: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))
    _totals: dict[tuple, int] = field(default_factory=lambda: defaultdict(int))

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        self._sums[key] += value
        self._totals[key] += 1
        for bucket in self.buckets:
            if value <= bucket:
                self._counts[key][bucket] += 1
                break


class MetricsRegistry:
    """Registry for all metrics."""

    def __init__(self) -> None:
        self.http_requests_total = Counter(
            name="http_requests_total",
            help="Total number of HTTP requests",
            labels=("method", "path", "status"),
        )
        self.recommendation_streams_total = Counter(
            name="recommendation_streams_total",
            help="Recommendation streams by outcome",
            labels=("outcome",),
        )
        self.recommendation_streams_in_progress = Gauge(
            name="recommendation_streams_in_progress",
            help="Recommendation streams currently relaying",
        )
        self.llm_stream_duration_seconds = Histogram(
            name="llm_stream_duration_seconds",
            help="Wall time of an upstream LLM stream",
        )
        self.catalog_matches_total = Counter(
            name="catalog_matches_total",
            help="Catalog title matches by result",
            labels=("result",),
        )

    def format_prometheus(self) -> str:
        """Format all metrics in Prometheus exposition format."""
        lines = []

        for metric in self.__dict__.values():
            if isinstance(metric, (Counter, Gauge)):
                kind = "counter" if isinstance(metric, Counter) else "gauge"
                lines.append(f"# HELP {metric.name} {metric.help}")
                lines.append(f"# TYPE {metric.name} {kind}")
                for key, value in metric._values.items():
                    if metric.labels:
                        lines.append(f"{metric.name}{{{metric._label_str(key)}}} {value}")
                    else:
                        lines.append(f"{metric.name} {value}")

            elif isinstance(metric, Histogram):
                lines.append(f"# HELP {metric.name} {metric.help}")
                lines.append(f"# TYPE {metric.name} histogram")
                for key in metric._sums:
                    prefix = f"{metric._label_str(key)}," if metric.labels else ""
                    cumulative = 0
                    for bucket in metric.buckets:
                        cumulative += metric._counts[key].get(bucket, 0)
                        lines.append(f'{metric.name}_bucket{{{prefix}le="{bucket}"}} {cumulative}')
                    lines.append(f'{metric.name}_bucket{{{prefix}le="+Inf"}} {metric._totals[key]}')
                    suffix = f"{{{metric._label_str(key)}}}" if metric.labels else ""
                    lines.append(f"{metric.name}_sum{suffix} {metric._sums[key]}")
                    lines.append(f"{metric.name}_count{suffix} {metric._totals[key]}")

        return "\n".join(lines)


# Global metrics registry
metrics = MetricsRegistry()


class MetricsMiddleware:
    """Count HTTP requests by method, path and status.

    Plain ASGI rather than BaseHTTPMiddleware so event streams pass through
    unbuffered.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        status = "500"

        async def send_wrapper(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = str(message["status"])
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            metrics.http_requests_total.inc(
                method=scope["method"], path=scope["path"], status=status
            )
