"""Data classes for job server entities."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, NamedTuple, Optional

from .enums import JobResultKind, JobStatus


class FailoverDecision(NamedTuple):
    """Answer of a failover policy for one retry."""
    max_retries: int
    next_host_url: str


@dataclass
class RetryState:
    """Retry bookkeeping for one top-level client call."""
    endpoint: str
    count: int = 0

    def increment(self) -> int:
        self.count += 1
        return self.count


@dataclass
class JarInfo:
    """An uploaded jar."""
    jar_name: str
    uploaded_time: str


@dataclass
class JobBaseInfo:
    """Fields shared by job listings and job results."""
    context: Optional[str] = None
    status: Optional[str] = None
    job_id: Optional[str] = None
    message: Optional[str] = None
    error_class: Optional[str] = None
    stack: List[str] = field(default_factory=list)

    @property
    def has_error(self) -> bool:
        return self.message is not None or self.error_class is not None or bool(self.stack)


@dataclass
class JobInfo(JobBaseInfo):
    """One entry of the job listing."""
    duration: Optional[str] = None
    class_path: Optional[str] = None
    start_time: Optional[str] = None


@dataclass
class JobResult(JobBaseInfo):
    """Result of starting a job or fetching a job's result.

    Carries exactly one of the shapes described by :class:`JobResultKind`.
    ``raw`` always holds the response body the result was built from.
    """
    raw: str = ""
    result: Optional[str] = None
    extended_attributes: Dict[str, Any] = field(default_factory=dict)
    not_found: bool = False
    # Shape chosen by the parser, inferred from the fields when unset
    shape: Optional[JobResultKind] = None

    @property
    def kind(self) -> JobResultKind:
        """Report which shape this result carries."""
        if self.not_found:
            return JobResultKind.NOT_FOUND
        if self.shape is not None:
            return self.shape
        if self.result is not None:
            return JobResultKind.COMPLETED
        if self.has_error or self.status == JobStatus.ERROR.value:
            return JobResultKind.ERROR
        if self.extended_attributes:
            return JobResultKind.EXTENDED
        if self.context is not None and self.job_id is not None:
            return JobResultKind.STARTED
        return JobResultKind.EXTENDED

    def get_extended_attribute(self, key: str, default: Any = None) -> Any:
        return self.extended_attributes.get(key, default)


@dataclass
class JobConfig:
    """Configuration a job was started with, values kept as decoded JSON."""
    items: Dict[str, Any] = field(default_factory=dict)

    def put_config_item(self, key: str, value: Any) -> None:
        self.items[key] = value

    def get_config_item(self, key: str, default: Any = None) -> Any:
        return self.items.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.items

    def __iter__(self) -> Iterator[str]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
