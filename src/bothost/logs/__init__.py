"""Log stream multiplexer - decoded, cancellable container log streams."""

from bothost.logs.decoder import LogLineDecoder, decode_line, strip_timestamp
from bothost.logs.registry import CancelFn, LogSubscriptionRegistry
from bothost.logs.stream import (
    DEFAULT_TAIL,
    ErrorCallback,
    LineCallback,
    LogSubscription,
    stream_logs,
)

__all__ = [
    "CancelFn",
    "DEFAULT_TAIL",
    "ErrorCallback",
    "LineCallback",
    "LogLineDecoder",
    "LogSubscription",
    "LogSubscriptionRegistry",
    "decode_line",
    "stream_logs",
    "strip_timestamp",
]
