"""Enumerations and well-known keys of the job server REST API."""

from enum import Enum


class JobStatus(str, Enum):
    """Status markers reported by the job server."""
    STARTED = "STARTED"
    RUNNING = "RUNNING"
    OK = "OK"
    FINISHED = "FINISHED"
    ERROR = "ERROR"
    KILLED = "KILLED"


# Statuses whose response carries the final result of a job
COMPLETED_STATUSES = frozenset({JobStatus.OK.value, JobStatus.FINISHED.value})


class JobResultKind(str, Enum):
    """Shape of a parsed job result."""
    COMPLETED = "completed"
    STARTED = "started"
    ERROR = "error"
    EXTENDED = "extended"
    NOT_FOUND = "not_found"


class ResponseKey(str, Enum):
    """JSON keys used in job server responses."""
    STATUS = "status"
    RESULT = "result"
    CONTEXT = "context"
    JOB_ID = "jobId"
    DURATION = "duration"
    CLASS_PATH = "classPath"
    START_TIME = "startTime"
    MESSAGE = "message"
    ERROR_CLASS = "errorClass"
    STACK = "stack"


class JobParam(str, Enum):
    """Query parameters accepted when starting a job or creating a context."""
    APP_NAME = "appName"
    CLASS_PATH = "classPath"
    CONTEXT = "context"
    SYNC = "sync"
    TIMEOUT = "timeout"
    NUM_CPU_CORES = "num-cpu-cores"
    MEMORY_PER_NODE = "memory-per-node"
