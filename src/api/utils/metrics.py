"""
Simple metrics collection for step tracking operations.
Lightweight alternative to Prometheus for a small group of users.
"""

from typing import Dict, Any, Optional
from datetime import datetime, timedelta
from collections import defaultdict, deque
import threading

from src.infra.config.settings import get_settings
from src.core.logger.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

OPERATIONS = ("register", "delete_user", "report", "reset", "stats", "leaderboard")


class StepMetrics:
    """In-memory metrics collector for engine operations."""

    def __init__(self, retention_hours: int = 24):
        self._lock = threading.Lock()
        self._retention_hours = retention_hours

        # Time-series data (timestamp, succeeded) pairs
        self._events = deque()

        self._counters = defaultdict(lambda: {'success': 0, 'failure': 0})
        self._leaderboard_windows = defaultdict(int)

    def _cleanup_old_data(self):
        """Remove data older than retention period."""
        cutoff_time = datetime.utcnow() - timedelta(hours=self._retention_hours)
        while self._events and self._events[0][0] < cutoff_time:
            self._events.popleft()

    def record_operation(self, operation: str, success: bool, window: Optional[str] = None):
        """Record the outcome of one engine operation."""
        with self._lock:
            now = datetime.utcnow()
            self._events.append((now, success))
            self._counters[operation]['success' if success else 'failure'] += 1
            if window and success:
                self._leaderboard_windows[window] += 1
            self._cleanup_old_data()

    def _recent_counts(self, since: datetime):
        recent = [ok for ts, ok in self._events if ts > since]
        failures = sum(1 for ok in recent if not ok)
        return len(recent), failures

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get current metrics summary."""
        with self._lock:
            self._cleanup_old_data()

            one_hour_ago = datetime.utcnow() - timedelta(hours=1)
            recent_total, recent_failures = self._recent_counts(one_hour_ago)
            failure_rate = (recent_failures / recent_total * 100) if recent_total > 0 else 0

            by_operation = {
                operation: {
                    'success_count': self._counters[operation]['success'],
                    'failure_count': self._counters[operation]['failure'],
                }
                for operation in OPERATIONS
            }

            return {
                'timestamp': datetime.utcnow().isoformat() + 'Z',
                'overall': {
                    'total_operations': sum(c['success'] + c['failure'] for c in self._counters.values()),
                    'total_failures': sum(c['failure'] for c in self._counters.values()),
                },
                'last_hour': {
                    'operations': recent_total,
                    'failures': recent_failures,
                    'failure_rate_percent': round(failure_rate, 2)
                },
                'by_operation': by_operation,
                'leaderboards_by_window': dict(self._leaderboard_windows),
                'retention_hours': self._retention_hours
            }

    def get_health_metrics(self) -> Dict[str, str]:
        """Get basic health metrics for health check."""
        with self._lock:
            five_min_ago = datetime.utcnow() - timedelta(minutes=5)
            recent_activity = any(ts > five_min_ago for ts, _ in list(self._events)[-10:])

            one_hour_ago = datetime.utcnow() - timedelta(hours=1)
            recent_total, recent_failures = self._recent_counts(one_hour_ago)
            error_rate = (recent_failures / recent_total * 100) if recent_total > 0 else 0

            if error_rate > 50:
                status = "unhealthy"
            elif error_rate > 20:
                status = "degraded"
            else:
                status = "healthy"

            return {
                'status': status,
                'recent_activity': 'yes' if recent_activity else 'no',
                'error_rate_percent': f"{error_rate:.1f}"
            }

    def reset(self):
        with self._lock:
            self._events.clear()
            self._counters.clear()
            self._leaderboard_windows.clear()


# Global metrics instance
metrics = StepMetrics(retention_hours=settings.METRICS_RETENTION_HOURS)


def get_metrics() -> StepMetrics:
    """Get the global metrics instance."""
    return metrics
