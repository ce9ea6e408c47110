r"""
Root logging setup for the Eden bot.

``LoggerConfigurator`` installs a single colorlog handler on the root logger;
the event logger in :mod:`eden.logs` propagates into it. Failures reported
through :func:`log_structured_error` are also counted per category by
``error_aggregator`` so a flapping store or server shows up as a rate alert
rather than an unnoticed stream of identical lines.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import defaultdict, deque
from typing import Any

import colorlog

MAX_ERRORS_PER_CATEGORY = 1000
ALERT_RATE_PER_HOUR = 10.0

LOG_FORMAT = (
    "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s"
)
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}

# Libraries that log every operation at DEBUG
QUIET_LOGGERS = ("aiosqlite", "watchdog")


class FseventsFilter(logging.Filter):
    """Drops the macOS fsevents chatter watchdog emits while watching the config file."""

    def filter(self, record):
        return "fsevents" not in record.getMessage().lower()


class ErrorAggregator:
    """Counts recent errors per category (network, store, config, ...).

    Only the newest ``MAX_ERRORS_PER_CATEGORY`` occurrences are kept; the
    rate is measured over the process lifetime, counted as at least one
    hour.
    """

    def __init__(self):
        self.errors: defaultdict[str, deque[dict[str, Any]]] = defaultdict(
            lambda: deque(maxlen=MAX_ERRORS_PER_CATEGORY)
        )
        self.lock = threading.Lock()
        self.start_time = time.time()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        with self.lock:
            self.errors[error_type].append(
                {"timestamp": time.time(), "message": message, "context": context or {}}
            )

    def get_error_summary(self) -> dict[str, Any]:
        now = time.time()
        hours = max((now - self.start_time) / 3600, 1)
        with self.lock:
            return {
                error_type: {
                    "total_count": len(entries),
                    "recent_count": sum(1 for e in entries if now - e["timestamp"] < 3600),
                    "rate_per_hour": len(entries) / hours,
                    "last_occurrence": entries[-1] if entries else None,
                }
                for error_type, entries in self.errors.items()
            }

    def should_alert(
        self, error_type: str, threshold_rate: float = ALERT_RATE_PER_HOUR
    ) -> bool:
        stats = self.get_error_summary().get(error_type)
        return stats is not None and stats["rate_per_hour"] > threshold_rate

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return
        logging.warning("ERROR SUMMARY REPORT")
        for error_type, stats in sorted(summary.items()):
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour, "
                f"{stats['rate_per_hour']:.1f}/hour"
            )


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log ``message`` tagged with its category and count it.

    Args:
        error_type: Category, as produced by ``classify_error``.
        message: What failed.
        exception: The exception that caused it, if any.
        context: Extra ``key=value`` details (server, nick, ...).
        level: Logging level (default: ERROR).
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))

    error_aggregator.record_error(error_type, message, context)
    if error_aggregator.should_alert(error_type):
        rate = error_aggregator.get_error_summary()[error_type]["rate_per_hour"]
        logging.critical(f"HIGH ERROR RATE ALERT: {error_type} occurring at {rate:.1f}/hour")


class LoggerConfigurator:
    """Configures the root logger once at startup.

    The ``DEBUG`` environment variable ('true', '1' or 'yes') selects DEBUG
    level; otherwise INFO.
    """

    def configure(self) -> int:
        debug_env = os.environ.get("DEBUG", "").lower()
        level = logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            colorlog.ColoredFormatter(
                LOG_FORMAT,
                datefmt="%Y-%m-%d %H:%M:%S",
                log_colors=LOG_COLORS,
                secondary_log_colors={
                    "message": {"ERROR": "red", "CRITICAL": "magenta"}
                },
                reset=True,
            )
        )
        handler.addFilter(FseventsFilter())

        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.INFO))

        atexit.register(error_aggregator.log_summary_report)
        return level
