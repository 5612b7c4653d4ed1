"""Utility modules for the job server client."""

from .failover import FailoverPolicy, RoundRobinFailover, fixed_failover, normalize_url
from .logging import configure_logging, get_logger

__all__ = [
    "FailoverPolicy",
    "RoundRobinFailover",
    "fixed_failover",
    "normalize_url",
    "configure_logging",
    "get_logger",
]
