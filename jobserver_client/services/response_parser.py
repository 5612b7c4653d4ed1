"""Interpretation of job server responses into typed entities."""

import json
from typing import Any, Dict, List, Optional

import structlog

from ..exceptions import JobServerClientError
from ..models.enums import COMPLETED_STATUSES, JobResultKind, JobStatus, ResponseKey
from ..models.schemas import JarInfo, JobBaseInfo, JobConfig, JobInfo, JobResult

logger = structlog.get_logger(__name__)

ERROR_DETAIL_KEYS = (ResponseKey.MESSAGE.value, ResponseKey.ERROR_CLASS.value, ResponseKey.STACK.value)


def report_status(endpoint: str, status_code: int, body: Optional[str], raise_error: bool) -> None:
    """Log an unexpected status and raise it when the calling operation requires.

    Raises:
        JobServerClientError: If ``raise_error`` is set
    """
    error_msg = f"Job server {endpoint} response {status_code}"
    if body:
        error_msg += f" {body}"
    logger.error(error_msg, endpoint=endpoint, status_code=status_code)
    if raise_error:
        raise JobServerClientError(error_msg)


def decode_json(body: str, expected_type: type) -> Any:
    """Decode a response body, checking the top-level JSON type."""
    try:
        decoded = json.loads(body)
    except ValueError as e:
        raise JobServerClientError(f"Malformed JSON in job server response: {body!r}", e) from e
    if not isinstance(decoded, expected_type):
        raise JobServerClientError(
            f"Expected a JSON {expected_type.__name__} from job server, got {type(decoded).__name__}"
        )
    return decoded


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _stack_lines(stack: Any) -> List[str]:
    if isinstance(stack, list):
        return [_text(line) for line in stack]
    return [_text(stack)]


def set_error_details(key: str, parent: Dict[str, Any], info: JobBaseInfo) -> None:
    """Copy error details found under ``key`` onto ``info``."""
    details = parent.get(key)
    if isinstance(details, str):
        info.message = details
        return
    if not isinstance(details, dict):
        return
    if ResponseKey.MESSAGE.value in details:
        info.message = _text(details[ResponseKey.MESSAGE.value])
    if ResponseKey.ERROR_CLASS.value in details:
        info.error_class = _text(details[ResponseKey.ERROR_CLASS.value])
    if ResponseKey.STACK.value in details:
        info.stack = _stack_lines(details[ResponseKey.STACK.value])


def _is_error_details(value: Any) -> bool:
    return isinstance(value, dict) and any(key in value for key in ERROR_DETAIL_KEYS)


def parse_result(body: str) -> JobResult:
    """Build a :class:`JobResult` from a job start or job result response.

    The first matching shape wins:

    1. no status, or a completed status, together with a ``result``
    2. ``STARTED`` status with a ``result`` holding context and job id
    3. ``ERROR`` status, or a ``result`` holding error details
    4. anything else, kept as extended attributes
    """
    data = decode_json(body, dict)
    job_result = JobResult(raw=body)

    status = data.get(ResponseKey.STATUS.value)
    has_result = ResponseKey.RESULT.value in data
    if status is not None:
        job_result.status = _text(status)
    completed = status is None or job_result.status in COMPLETED_STATUSES

    if completed and has_result:
        payload = data[ResponseKey.RESULT.value]
        job_result.result = payload if isinstance(payload, str) else json.dumps(payload)
        job_result.shape = JobResultKind.COMPLETED
    elif job_result.status == JobStatus.STARTED.value and has_result:
        started = data[ResponseKey.RESULT.value]
        if not isinstance(started, dict):
            raise JobServerClientError(f"Unexpected result of started job: {started!r}")
        job_result.context = _text(started.get(ResponseKey.CONTEXT.value))
        job_result.job_id = _text(started.get(ResponseKey.JOB_ID.value))
        job_result.shape = JobResultKind.STARTED
    elif job_result.status == JobStatus.ERROR.value or _is_error_details(data.get(ResponseKey.RESULT.value)):
        if JobStatus.ERROR.value in data:
            error_key = JobStatus.ERROR.value
        else:
            error_key = ResponseKey.RESULT.value
        set_error_details(error_key, data, job_result)
        job_result.shape = JobResultKind.ERROR
    else:
        for key, value in data.items():
            if key == ResponseKey.STATUS.value:
                continue
            job_result.extended_attributes[key] = value
        job_result.shape = JobResultKind.EXTENDED

    return job_result


def parse_jars(body: str) -> List[JarInfo]:
    """Parse the jar listing, a JSON object of jar name to upload time."""
    data = decode_json(body, dict)
    return [JarInfo(jar_name=name, uploaded_time=_text(uploaded)) for name, uploaded in data.items()]


def parse_contexts(body: str) -> List[str]:
    return [_text(context) for context in decode_json(body, list)]


def parse_jobs(body: str) -> List[JobInfo]:
    """Parse the job listing, a JSON array of job objects."""
    jobs = []
    for item in decode_json(body, list):
        if not isinstance(item, dict):
            raise JobServerClientError(f"Unexpected job entry in job listing: {item!r}")
        job_info = JobInfo(
            duration=_text(item.get(ResponseKey.DURATION.value)),
            class_path=_text(item.get(ResponseKey.CLASS_PATH.value)),
            start_time=_text(item.get(ResponseKey.START_TIME.value)),
            context=_text(item.get(ResponseKey.CONTEXT.value)),
            status=_text(item.get(ResponseKey.STATUS.value)),
            job_id=_text(item.get(ResponseKey.JOB_ID.value)),
        )
        set_error_details(ResponseKey.RESULT.value, item, job_info)
        jobs.append(job_info)
    return jobs


def parse_config(body: str) -> JobConfig:
    job_config = JobConfig()
    for key, value in decode_json(body, dict).items():
        job_config.put_config_item(key, value)
    return job_config
