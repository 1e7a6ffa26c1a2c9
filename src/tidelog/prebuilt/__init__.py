from tidelog.prebuilt.handler import TRACE_LEVEL, AsyncConsoleHandler, install
from tidelog.prebuilt.logger import BannedLogger, EmitterLogger, get_logger

__all__ = [
    # Logger facade
    "EmitterLogger",
    "BannedLogger",
    "get_logger",
    # stdlib logging bridge
    "AsyncConsoleHandler",
    "install",
    "TRACE_LEVEL",
]
