"""
Metrics and Correlated Logging Tests

1. SAP call counters, error kinds and latency windows
2. Correlation ids flow into both log formats
3. CorrelatedLogger keeps tracebacks and masks secrets

A log line must say which request, user and SAP service it belongs to.
"""

import json
import logging

import pytest

from core.observability import logging as gateway_logging
from core.observability.logging import (
    CorrelationContext,
    HumanReadableFormatter,
    StructuredFormatter,
    get_correlation_context,
    get_logger,
    with_correlation,
)
from core.observability.metrics import MetricsCollector, get_metrics


def test_package_exports():
    from core.observability import configure_logging, get_logger, get_metrics

    assert callable(configure_logging)
    assert callable(get_logger)
    assert get_metrics() is MetricsCollector.instance()


@pytest.fixture
def captured():
    """Records handled by the 'test.observability' logger."""
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    base = logging.getLogger("test.observability")
    handler = ListHandler()
    base.addHandler(handler)
    base.setLevel(logging.DEBUG)
    yield records
    base.removeHandler(handler)


def _record(msg="hello", name="connectors.sap"):
    return logging.LogRecord(name, logging.INFO, "sap_client.py", 10, msg, (), None)


class TestMetricsCollector:

    def test_get_metrics_is_process_wide(self):
        assert get_metrics() is MetricsCollector.instance()
        assert MetricsCollector.instance() is MetricsCollector.instance()

    def test_counts_per_service_and_kind(self):
        mc = MetricsCollector()

        mc.record_call_started("ZRFC_SALEORDERS_863")
        mc.record_call_started("ZRFC_SALEORDERS_863")
        mc.record_call_started("ZRFC_CDMEMO_863")
        mc.record_call_completed("ZRFC_SALEORDERS_863", duration_ms=120)
        mc.record_call_failed("ZRFC_SALEORDERS_863", "timeout", duration_ms=30000)

        calls = mc.get_summary()["calls"]
        assert (calls["started"], calls["completed"], calls["failed"]) == (3, 1, 1)
        assert calls["in_flight"] == 1
        assert calls["by_service"]["ZRFC_SALEORDERS_863"] == {"started": 2, "completed": 1, "failed": 1}
        assert calls["errors_by_kind"] == {"timeout": 1}
        assert calls["last_error_at"] is not None

    def test_latency_average_and_p95(self):
        mc = MetricsCollector()
        for ms in range(1, 101):
            mc.record_call_started("ZRFC_INVOICE_DETAILS_863")
            mc.record_call_completed("ZRFC_INVOICE_DETAILS_863", duration_ms=ms)

        stats = mc.get_timing_stats("ZRFC_INVOICE_DETAILS_863")

        assert stats["average_ms"] == 50.5
        assert 93 <= stats["p95_ms"] <= 97
        assert stats["sample_count"] == 100
        assert mc.get_timing_stats()["sample_count"] == 100

    def test_unknown_service_has_no_samples(self):
        assert MetricsCollector().get_timing_stats("ZRFC_NOPE")["sample_count"] == 0

    def test_latency_window_is_bounded(self):
        mc = MetricsCollector()
        for _ in range(1200):
            mc.record_call_completed("ZRFC_X", duration_ms=1)

        assert mc.get_timing_stats("ZRFC_X")["sample_count"] == 1000

    def test_empty_collector(self):
        summary = MetricsCollector().get_summary()

        assert summary["calls"]["started"] == 0
        assert summary["calls"]["by_service"] == {}
        assert summary["timings"]["overall"]["p95_ms"] == 0.0

    def test_reset(self):
        mc = MetricsCollector()
        mc.record_call_started("ZRFC_X")
        mc.record_call_failed("ZRFC_X", "transport")

        mc.reset()

        assert mc.get_summary()["calls"]["failed"] == 0
        assert mc.get_summary()["calls"]["errors_by_kind"] == {}


class TestCorrelationContext:

    def test_to_dict_skips_unset_ids(self):
        ctx = CorrelationContext(request_id="req-001", route="/api/invoices")

        assert ctx.to_dict() == {"request_id": "req-001", "route": "/api/invoices"}

    def test_merge_ignores_none(self):
        ctx = CorrelationContext(request_id="req-001").merge(sap_service="ZRFC_CDMEMO_863", user_id=None)

        assert ctx.request_id == "req-001"
        assert ctx.sap_service == "ZRFC_CDMEMO_863"
        assert ctx.user_id is None

    def test_nested_blocks_restore_outer_ids(self):
        assert get_correlation_context().sap_service is None

        with with_correlation(request_id="req-001"):
            with with_correlation(sap_service="ZRFC_TEST_863"):
                inner = get_correlation_context()
            outer = get_correlation_context()

        assert (inner.request_id, inner.sap_service) == ("req-001", "ZRFC_TEST_863")
        assert outer.sap_service is None
        assert get_correlation_context().request_id is None


class TestFormatters:

    def test_json_line_carries_ids_and_extras(self):
        record = _record("SAP call completed")
        record.extra_fields = {"duration_ms": 12.5}

        with with_correlation(request_id="req-001", sap_service="ZRFC_SALEORDERS_863"):
            data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "SAP call completed"
        assert data["logger"] == "connectors.sap"
        assert data["request_id"] == "req-001"
        assert data["sap_service"] == "ZRFC_SALEORDERS_863"
        assert data["duration_ms"] == 12.5
        assert data["timestamp"].endswith("Z")

    def test_console_prefix(self):
        with with_correlation(request_id="abcdef123456", user_id="42", sap_service="ZRFC_CDMEMO_863"):
            output = HumanReadableFormatter().format(_record())

        assert "[abcdef12/user:42/ZRFC_CDMEMO_863]" in output
        assert output.endswith("hello")

    def test_console_without_context(self):
        output = HumanReadableFormatter().format(_record())

        assert "[-]: hello" in output


class TestCorrelatedLogger:

    def test_exception_keeps_traceback(self, captured):
        logger = get_logger("test.observability")

        try:
            raise ValueError("boom")
        except ValueError:
            logger.exception("Failed")

        assert len(captured) == 1
        assert captured[0].exc_info[0] is ValueError

    def test_extra_fields_are_attached(self, captured):
        get_logger("test.observability").info("SAP call completed", extra_fields={"status": 200})

        assert captured[0].extra_fields == {"status": 200}

    def test_secret_fields_are_redacted(self, captured):
        get_logger("test.observability").info(
            "Login attempt",
            extra_fields={"username": "jdoe", "IV_PASSWORD": "pw", "Authorization": "Basic x"},
        )

        assert captured[0].extra_fields == {"username": "jdoe", "IV_PASSWORD": "***", "Authorization": "***"}

    def test_disabled_level_is_dropped(self, captured):
        logging.getLogger("test.observability").setLevel(logging.WARNING)

        get_logger("test.observability").debug("noise")

        assert captured == []


def test_configure_logging_replaces_its_handler():
    root = logging.getLogger()
    level_before = root.level
    try:
        gateway_logging.configure_logging(logging.INFO)
        first = gateway_logging._handler
        gateway_logging.configure_logging(logging.DEBUG, json_format=True)

        assert first not in root.handlers
        assert gateway_logging._handler in root.handlers
        assert isinstance(gateway_logging._handler.formatter, StructuredFormatter)
        assert logging.getLogger("zeep").level == logging.WARNING
    finally:
        root.removeHandler(gateway_logging._handler)
        gateway_logging._handler = None
        root.setLevel(level_before)
