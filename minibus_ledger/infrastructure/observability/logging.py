"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from minibus_ledger.domain.models import AnomalySummary, DailySettlementResult


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "minibus-ledger", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "minibus-ledger") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_settlement(
    request_id: str,
    record_id: str | None,
    result: DailySettlementResult,
    duration_ms: float,
) -> None:
    """Log a settlement outcome; record_id is None for previews"""
    logging.info(
        "Settlement computed",
        extra={
            "request_id": request_id,
            "record_id": record_id,
            "step": "settlement_complete",
            "branch": result.branch,
            "driver_share": str(result.driver_share),
            "operator_share": str(result.operator_share),
            "net_residual": str(result.net_residual),
            "duration_ms": duration_ms,
        },
    )


def log_anomaly_report(request_id: str, summary: AnomalySummary, duration_ms: float) -> None:
    """Log the headline numbers of an anomaly report"""
    logging.info(
        "Anomaly report generated",
        extra={
            "request_id": request_id,
            "step": "anomaly_report_complete",
            "total_records": summary.total_records,
            "below_minimum_records": summary.below_minimum_records,
            "suspicious_records": summary.suspicious_records,
            "drivers_at_risk": summary.drivers_at_risk,
            "duration_ms": duration_ms,
        },
    )
