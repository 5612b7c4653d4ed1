"""Client library for the job server REST API."""

from .config.settings import ClientSettings, get_settings
from .exceptions import JobServerClientError
from .models.enums import JobParam, JobResultKind, JobStatus
from .models.schemas import FailoverDecision, JarInfo, JobConfig, JobInfo, JobResult
from .services.http_client import JobServerClient, create_client
from .utils.failover import RoundRobinFailover, fixed_failover

__version__ = "1.0.0"

__all__ = [
    "ClientSettings",
    "get_settings",
    "JobServerClientError",
    "JobParam",
    "JobResultKind",
    "JobStatus",
    "FailoverDecision",
    "JarInfo",
    "JobConfig",
    "JobInfo",
    "JobResult",
    "JobServerClient",
    "create_client",
    "RoundRobinFailover",
    "fixed_failover",
]
