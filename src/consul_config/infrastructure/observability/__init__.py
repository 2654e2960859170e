"""
Observability - structured logging with per-cycle correlation IDs.
"""

from .logging import (
    CorrelationFilter, JSONLogFormatter, HumanReadableFormatter,
    configure_logging, watch_cycle, get_cycle_id
)

__all__ = [
    "CorrelationFilter",
    "JSONLogFormatter",
    "HumanReadableFormatter",
    "configure_logging",
    "watch_cycle",
    "get_cycle_id",
]
