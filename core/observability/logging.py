"""
Structured Logging with Correlation IDs

Every log line carries the ids of the request it belongs to:
- request_id: one inbound portal request (X-Request-ID)
- user_id: the portal user the request acts for
- route: request path
- sap_service / sap_function: the SOAP service and RFC function being called

Usage:
    from core.observability.logging import get_logger, with_correlation

    logger = get_logger(__name__)

    with with_correlation(request_id="req-001", user_id="0000000042"):
        logger.info("Fetching sales orders", extra_fields={"rows": 12})

Credentials never reach a handler: extra fields whose name looks like a
secret (password, authorization, token, ...) are replaced by "***".
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional


REDACTED = "***"
SENSITIVE_KEYS = ("password", "authorization", "token", "secret", "iv_password")

GATEWAY_LOGGERS = ("api", "connectors", "core")
NOISY_LOGGERS = ("zeep", "urllib3", "httpx", "aiohttp.access")


# =============================================================================
# Correlation Context
# =============================================================================

@dataclass(frozen=True)
class CorrelationContext:
    """Ids shared by all log lines of one request and its SAP calls."""
    request_id: Optional[str] = None
    user_id: Optional[str] = None
    route: Optional[str] = None
    sap_service: Optional[str] = None
    sap_function: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Set ids only."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **ids) -> "CorrelationContext":
        """Copy with the given ids overriding; None leaves an id unchanged."""
        data = self.to_dict()
        data.update({k: v for k, v in ids.items() if v is not None})
        return CorrelationContext(**data)


_correlation_context: ContextVar[CorrelationContext] = ContextVar(
    "correlation_context",
    default=CorrelationContext(),
)


def get_correlation_context() -> CorrelationContext:
    return _correlation_context.get()


def set_correlation_context(ctx: CorrelationContext) -> None:
    """Replace the context for the rest of the current task."""
    _correlation_context.set(ctx)


@contextmanager
def with_correlation(**ids) -> Iterator[CorrelationContext]:
    """
    Bind correlation ids for the duration of the block.

    Nested blocks add to the outer ids; leaving a block restores them.

    Usage:
        with with_correlation(sap_service="ZRFC_CDMEMO_863"):
            logger.info("Calling SAP")
    """
    token = _correlation_context.set(get_correlation_context().merge(**ids))
    try:
        yield _correlation_context.get()
    finally:
        _correlation_context.reset(token)


def redact(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Mask values of secret-looking keys."""
    return {
        key: REDACTED if any(s in key.lower() for s in SENSITIVE_KEYS) else value
        for key, value in fields.items()
    }


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


# =============================================================================
# Formatters
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    {"timestamp": "2024-01-09T12:00:00.000Z", "level": "INFO",
     "logger": "connectors.sap", "message": "SAP call completed: ZRFC_SALEORDERS_863",
     "request_id": "3f2a9c1e...", "sap_service": "ZRFC_SALEORDERS_863", "duration_ms": 412.7}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": _timestamp(record).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(get_correlation_context().to_dict())
        log_data.update(getattr(record, "extra_fields", None) or {})

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Console format for development.

    2024-01-09 12:00:00 [INFO ] connectors.sap [3f2a9c1e/user:42/ZRFC_SALEORDERS_863]: SAP call completed duration_ms=412.7
    """

    @staticmethod
    def _prefix(ctx: CorrelationContext) -> str:
        parts = []
        if ctx.request_id:
            parts.append(ctx.request_id[:8])
        if ctx.user_id:
            parts.append(f"user:{ctx.user_id}")
        if ctx.sap_service:
            parts.append(ctx.sap_service)
        return "/".join(parts) or "-"

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{_timestamp(record):%Y-%m-%d %H:%M:%S} [{record.levelname:5}] {record.name} "
            f"[{self._prefix(get_correlation_context())}]: {record.getMessage()}"
        )

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            line += " " + " ".join(f"{k}={v}" for k, v in extra_fields.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Logger
# =============================================================================

class CorrelatedLogger:
    """
    Thin wrapper over logging.Logger accepting extra_fields=.

    logger.info("msg", extra_fields={...}) attaches the (redacted) fields to
    the record; formatters render them next to the correlation ids.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def log(self, level: int, msg: str, *args, extra_fields: Optional[Dict[str, Any]] = None, exc_info=None):
        if not self._logger.isEnabledFor(level):
            return
        if exc_info is True:
            exc_info = sys.exc_info()

        record = self._logger.makeRecord(
            self._logger.name, level, "(unknown file)", 0, msg, args, exc_info or None,
        )
        record.extra_fields = redact(extra_fields or {})
        self._logger.handle(record)

    def debug(self, msg: str, *args, **kwargs):
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs["exc_info"] = True
        self.log(logging.ERROR, msg, *args, **kwargs)

    def setLevel(self, level):
        self._logger.setLevel(level)

    def isEnabledFor(self, level) -> bool:
        return self._logger.isEnabledFor(level)


_loggers: Dict[str, CorrelatedLogger] = {}
_handler: Optional[logging.Handler] = None


def configure_logging(level: int = logging.INFO, json_format: bool = False) -> None:
    """
    Install the gateway's stdout handler on the root logger.

    Calling again swaps the handler, so level and format follow the latest
    settings instead of stacking handlers.

    Args:
        level: Logging level for the root and gateway loggers
        json_format: JSON lines instead of the console format
    """
    global _handler

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stdout)
    _handler.setLevel(level)
    _handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())

    root.setLevel(level)
    root.addHandler(_handler)

    for name in GATEWAY_LOGGERS:
        logging.getLogger(name).setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> CorrelatedLogger:
    """Correlated logger for a module (pass __name__)."""
    if name not in _loggers:
        _loggers[name] = CorrelatedLogger(logging.getLogger(name))
    return _loggers[name]


# =============================================================================
# SAP call logging
# =============================================================================

_sap_logger = get_logger("connectors.sap")


def _with_duration(duration_ms: Optional[float], fields: Dict[str, Any]) -> Dict[str, Any]:
    extra = {"duration_ms": round(duration_ms, 1)} if duration_ms is not None else {}
    extra.update(fields)
    return extra


def log_sap_call_start(service_name: str, **fields):
    _sap_logger.info(f"SAP call started: {service_name}", extra_fields=fields)


def log_sap_call_complete(service_name: str, duration_ms: Optional[float] = None, **fields):
    _sap_logger.info(f"SAP call completed: {service_name}", extra_fields=_with_duration(duration_ms, fields))


def log_sap_call_error(service_name: str, error: str, duration_ms: Optional[float] = None, **fields):
    _sap_logger.error(f"SAP call failed: {service_name} - {error}", extra_fields=_with_duration(duration_ms, fields))
