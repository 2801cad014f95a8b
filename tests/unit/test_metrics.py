"""
Unit tests for metrics collection and Prometheus export.
"""
import threading

import pytest

from tiffinos.lib.metrics import MetricsCollector, get_metrics_collector, reset_metrics


@pytest.fixture
def metrics():
    """Fresh metrics collector for each test."""
    return MetricsCollector()


@pytest.mark.unit
def test_metrics_collector_initialization(metrics):
    """Test metrics collector initializes with empty counters."""
    assert metrics.export_prometheus() == ""


@pytest.mark.unit
def test_increment_payments_counts_and_sums(metrics):
    metrics.increment_payments(payment_mode="upi", payment_type="partial", amount=1500)
    metrics.increment_payments(payment_mode="UPI", payment_type="full", amount=500)

    assert metrics.get_counter_value(
        "payments_recorded_total", {"payment_mode": "upi", "payment_type": "partial"}
    ) == 1
    assert metrics.get_counter_value(
        "payments_recorded_total", {"payment_mode": "upi", "payment_type": "full"}
    ) == 1
    assert metrics.get_counter_value("payment_amount_total", {"payment_mode": "upi"}) == 2000


@pytest.mark.unit
def test_zero_amount_payment_does_not_touch_sum(metrics):
    metrics.increment_payments(payment_mode="cash", payment_type="partial", amount=0)

    assert metrics.get_counter_value("payment_amount_total", {"payment_mode": "cash"}) == 0


@pytest.mark.unit
def test_operation_counters(metrics):
    metrics.increment_attendance("lunch", amount=3)
    metrics.increment_onboarded("monthly")
    metrics.increment_lifecycle("soft_deleted")
    metrics.increment_reports("business")

    assert metrics.get_counter_value("attendance_marked_total", {"slot": "lunch"}) == 3
    assert metrics.get_counter_value("customers_onboarded_total", {"customer_type": "monthly"}) == 1
    assert metrics.get_counter_value("customer_lifecycle_events_total", {"event": "soft_deleted"}) == 1
    assert metrics.get_counter_value("reports_generated_total", {"kind": "business"}) == 1


@pytest.mark.unit
def test_export_prometheus_format(metrics):
    metrics.increment_attendance("dinner", amount=2)
    metrics.increment_payments("cash", "advance", amount=1000)

    output = metrics.export_prometheus()

    assert "# HELP attendance_marked_total Total number of meal slots marked" in output
    assert "# TYPE attendance_marked_total counter" in output
    assert 'attendance_marked_total{slot="dinner"} 2' in output
    assert 'payments_recorded_total{payment_mode="cash",payment_type="advance"} 1' in output
    assert 'payment_amount_total{payment_mode="cash"} 1000' in output


@pytest.mark.unit
def test_thread_safe_increments(metrics):
    def worker():
        for _ in range(1000):
            metrics.increment_attendance("lunch")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert metrics.get_counter_value("attendance_marked_total", {"slot": "lunch"}) == 8000


@pytest.mark.unit
def test_global_collector_reset():
    collector = get_metrics_collector()
    collector.increment_reports("dashboard")
    assert collector is get_metrics_collector()

    reset_metrics()

    assert collector.get_counter_value("reports_generated_total", {"kind": "dashboard"}) == 0
