from __future__ import annotations

from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

registry = CollectorRegistry(auto_describe=True)

JSON_PARSE_FAILURES = Counter(
    "archivist_json_parse_failures_total",
    "Number of times parsing JSON from Gemini failed, labeled by the extraction tier.",
    ["tier"],
    registry=registry,
)

GEMINI_CALL_DURATION = Histogram(
    "archivist_gemini_call_duration_seconds",
    "Latency for Gemini API calls per operation.",
    ["operation"],
    registry=registry,
)

GEMINI_CALLS_TOTAL = Counter(
    "archivist_gemini_calls_total",
    "Total Gemini API calls partitioned by operation and status.",
    ["operation", "status"],
    registry=registry,
)

IDENTIFICATION_RESULTS = Counter(
    "archivist_identification_results_total",
    "Character identification outcomes (ok, empty, request_error, parse_error).",
    ["outcome"],
    registry=registry,
)

CHARACTER_DETAIL_RESULTS = Counter(
    "archivist_character_detail_results_total",
    "Per-character profile outcomes (completed, skipped).",
    ["outcome"],
    registry=registry,
)

ANALYSIS_RUNS_TOTAL = Counter(
    "archivist_analysis_runs_total",
    "Analysis runs by the phase they ended in.",
    ["phase"],
    registry=registry,
)


def increment_json_parse_failure(tier: str) -> None:
    JSON_PARSE_FAILURES.labels(tier=tier).inc()


@contextmanager
def track_gemini_call(operation: str):
    timer = GEMINI_CALL_DURATION.labels(operation=operation).time()
    timer.__enter__()
    try:
        yield
        GEMINI_CALLS_TOTAL.labels(operation=operation, status="success").inc()
    except Exception:
        GEMINI_CALLS_TOTAL.labels(operation=operation, status="error").inc()
        raise
    finally:
        timer.__exit__(None, None, None)


def record_identification(outcome: str) -> None:
    IDENTIFICATION_RESULTS.labels(outcome=outcome).inc()


def record_character_detail(outcome: str) -> None:
    CHARACTER_DETAIL_RESULTS.labels(outcome=outcome).inc()


def record_run_finished(phase: str) -> None:
    ANALYSIS_RUNS_TOTAL.labels(phase=phase).inc()


def get_metrics_payload() -> bytes:
    return generate_latest(registry)
