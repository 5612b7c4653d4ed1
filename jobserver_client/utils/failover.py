"""Failover policies deciding where a call goes after a connectivity failure."""

from typing import Callable, List, Sequence

import structlog

from ..models.schemas import FailoverDecision

logger = structlog.get_logger(__name__)

# Called with the retry count of the failing call (1 on the first retry)
FailoverPolicy = Callable[[int], FailoverDecision]


def normalize_url(url: str) -> str:
    """Make sure a base URL ends with a slash."""
    url = url.strip()
    if not url.endswith("/"):
        url = url + "/"
    return url


def fixed_failover(next_host_url: str, max_retries: int) -> FailoverPolicy:
    """Always fail over to the same host."""
    if max_retries < 0:
        raise ValueError("max_retries must be >= 0")
    decision = FailoverDecision(max_retries, normalize_url(next_host_url))

    def policy(retry_count: int) -> FailoverDecision:
        return decision

    return policy


class RoundRobinFailover:
    """Cycle through a list of job server hosts, one per retry."""

    def __init__(self, hosts: Sequence[str], max_retries: int):
        if not hosts:
            raise ValueError("At least one failover host is required")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.hosts: List[str] = [normalize_url(host) for host in hosts]
        self.max_retries = max_retries

    def __call__(self, retry_count: int) -> FailoverDecision:
        host = self.hosts[(retry_count - 1) % len(self.hosts)]
        logger.debug("Failover host selected", retry_count=retry_count, host=host)
        return FailoverDecision(self.max_retries, host)
