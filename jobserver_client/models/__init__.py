"""Models and data structures for the job server client."""

from .enums import COMPLETED_STATUSES, JobParam, JobResultKind, JobStatus, ResponseKey
from .schemas import (
    FailoverDecision,
    JarInfo,
    JobBaseInfo,
    JobConfig,
    JobInfo,
    JobResult,
    RetryState,
)

__all__ = [
    "COMPLETED_STATUSES",
    "JobParam",
    "JobResultKind",
    "JobStatus",
    "ResponseKey",
    "FailoverDecision",
    "JarInfo",
    "JobBaseInfo",
    "JobConfig",
    "JobInfo",
    "JobResult",
    "RetryState",
]
