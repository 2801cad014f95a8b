"""
Prometheus-compatible metrics for observability.

Tracks key business events:
- Payments recorded (by mode and type) and amount collected
- Attendance marks (by meal slot)
- Customer onboarding and lifecycle events (soft delete, restore, purge)
- Reports generated

Usage:
    from tiffinos.lib.metrics import get_metrics_collector

    metrics = get_metrics_collector()
    metrics.increment_payments(payment_mode="upi", payment_type="partial", amount=1500)
    metrics.increment_attendance(slot="lunch")

    # Export for Prometheus
    prometheus_output = metrics.export_prometheus()
"""

from typing import Dict, Tuple
from threading import Lock


class MetricsCollector:
    """
    Prometheus-style metrics collector for TiffinOS.

    Counters:
    - payments_recorded_total: Payments stored (labels: payment_mode, payment_type)
    - payment_amount_total: Sum of amounts stored (labels: payment_mode)
    - attendance_marked_total: Meal slots marked (labels: slot)
    - customers_onboarded_total: New customers (labels: customer_type)
    - customer_lifecycle_events_total: Soft delete / restore / purge (labels: event)
    - reports_generated_total: Reports built (labels: kind)

    Thread-safe for concurrent increments.
    """

    def __init__(self):
        self._lock = Lock()

        # Counters: key = (metric_name, labels_tuple), value = count
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}

    def _get_counter_key(self, metric_name: str, labels: Dict[str, str]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Generate unique key for counter with sorted labels."""
        sorted_labels = tuple(sorted(labels.items()))
        return (metric_name, sorted_labels)

    def _increment(self, metric_name: str, labels: Dict[str, str], amount: int = 1):
        """Thread-safe increment of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def _get_value(self, metric_name: str, labels: Dict[str, str]) -> int:
        """Get current value of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    # ===== Money =====

    def increment_payments(self, payment_mode: str, payment_type: str, amount: int = 0):
        """
        Count a recorded payment and add its amount to the collection total.

        Args:
            payment_mode: cash, upi, card, bank_transfer
            payment_type: advance, partial, full, walk_in
            amount: Payment amount in whole rupees
        """
        self._increment(
            "payments_recorded_total",
            {"payment_mode": payment_mode.lower(), "payment_type": payment_type.lower()},
        )
        if amount:
            self._increment("payment_amount_total", {"payment_mode": payment_mode.lower()}, amount)

    # ===== Operations =====

    def increment_attendance(self, slot: str, amount: int = 1):
        """Count meal slots marked (lunch, dinner, guest)."""
        self._increment("attendance_marked_total", {"slot": slot.lower()}, amount)

    def increment_onboarded(self, customer_type: str, amount: int = 1):
        """Count newly created customers."""
        self._increment("customers_onboarded_total", {"customer_type": customer_type.lower()}, amount)

    def increment_lifecycle(self, event: str, amount: int = 1):
        """Count recycle-bin transitions (soft_deleted, restored, purged)."""
        self._increment("customer_lifecycle_events_total", {"event": event.lower()}, amount)

    def increment_reports(self, kind: str, amount: int = 1):
        """Count generated reports (dashboard, customer, business)."""
        self._increment("reports_generated_total", {"kind": kind.lower()}, amount)

    # ===== Export =====

    def export_prometheus(self) -> str:
        """
        Export all metrics in Prometheus text format.

        Returns:
            Prometheus-compatible text output
        """
        output_lines = []

        # Group counters by metric name
        metrics_by_name: Dict[str, list] = {}
        with self._lock:
            for (metric_name, labels_tuple), value in self._counters.items():
                metrics_by_name.setdefault(metric_name, []).append((dict(labels_tuple), value))

        for metric_name in sorted(metrics_by_name.keys()):
            help_text = self._get_help_text(metric_name)
            output_lines.append(f"# HELP {metric_name} {help_text}")
            output_lines.append(f"# TYPE {metric_name} counter")

            for labels_dict, value in sorted(metrics_by_name[metric_name], key=lambda x: str(x[0])):
                labels_str = ",".join([f'{k}="{v}"' for k, v in sorted(labels_dict.items())])
                output_lines.append(f"{metric_name}{{{labels_str}}} {value}")

            output_lines.append("")

        return "\n".join(output_lines)

    def _get_help_text(self, metric_name: str) -> str:
        """Get help text for metric."""
        help_texts = {
            "payments_recorded_total": "Total number of payments recorded",
            "payment_amount_total": "Total amount collected in whole rupees",
            "attendance_marked_total": "Total number of meal slots marked",
            "customers_onboarded_total": "Total number of customers created",
            "customer_lifecycle_events_total": "Total number of recycle-bin transitions",
            "reports_generated_total": "Total number of reports generated",
        }
        return help_texts.get(metric_name, "Counter metric")

    def get_counter_value(self, metric_name: str, labels: Dict[str, str]) -> int:
        """
        Get current value of a specific counter.

        Args:
            metric_name: Name of the metric
            labels: Exact label set

        Returns:
            Current counter value
        """
        return self._get_value(metric_name, labels)

    def reset_all(self):
        """Reset all counters (for testing)."""
        with self._lock:
            self._counters.clear()


# Global singleton instance
_metrics_collector: MetricsCollector | None = None
_metrics_lock = Lock()


def get_metrics_collector() -> MetricsCollector:
    """
    Get global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics collector (for testing)."""
    with _metrics_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset_all()
