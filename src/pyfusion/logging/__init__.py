"""PyFusion Logging — hexagonal logging port and adapters."""

from pyfusion.logging.port import LoggingPort
from pyfusion.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
