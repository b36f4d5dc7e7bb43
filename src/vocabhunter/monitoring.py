"""Monitoring configuration for the quiz engine."""
from typing import Optional

from prometheus_client import Counter, Histogram, start_http_server

from vocabhunter.config import settings

# Quiz metrics
rounds_generated = Counter(
    "vocabhunter_rounds_generated_total",
    "Total number of quiz rounds presented",
    ["mode"],
)

no_rounds = Counter(
    "vocabhunter_no_rounds_total",
    "Total number of round requests with nothing to practice",
    ["reason"],
)

answers_judged = Counter(
    "vocabhunter_answers_judged_total",
    "Total number of judged answers",
    ["mode", "verdict"],
)

rejected_submissions = Counter(
    "vocabhunter_rejected_submissions_total",
    "Total number of answer submissions rejected by the round lock",
)

# Mastery metrics
words_archived = Counter(
    "vocabhunter_words_archived_total",
    "Total number of word-mode pairs archived as mastered",
    ["mode"],
)

milestones_reached = Counter(
    "vocabhunter_milestones_reached_total",
    "Total number of achievement milestone transitions",
)

# Persistence metrics
persistence_errors = Counter(
    "vocabhunter_persistence_errors_total",
    "Total number of failed persistence writes",
    ["operation"],
)

persistence_duration = Histogram(
    "vocabhunter_persistence_duration_seconds",
    "Duration of persistence writes in seconds",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

# Translation cache metrics
translation_cache = Counter(
    "vocabhunter_translation_cache_total",
    "Translation cache lookups",
    ["result"],
)


def start_monitoring(port: Optional[int] = None) -> None:
    """Start the Prometheus metrics server, on METRICS_PORT by default."""
    start_http_server(settings.monitoring.port if port is None else port)
