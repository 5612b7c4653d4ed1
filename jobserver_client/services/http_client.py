"""HTTP client for the job server REST API with host failover."""

import os
import re
from typing import IO, Any, Callable, List, Mapping, Optional, TypeVar, Union
from urllib.parse import quote

import httpx
import structlog

from ..config.settings import ClientSettings
from ..exceptions import JobServerClientError
from ..models.enums import JobParam
from ..models.schemas import JarInfo, JobConfig, JobInfo, JobResult, RetryState
from ..utils.failover import FailoverPolicy, RoundRobinFailover, normalize_url
from . import response_parser

logger = structlog.get_logger(__name__)

T = TypeVar("T")

JAR_CONTENT_TYPE = "application/java-archive"
TEXT_CONTENT_TYPE = "text/plain;charset=utf-8"

# Failures that mean the host could not be reached, the only ones retried
CONNECTIVITY_ERRORS = (httpx.NetworkError, httpx.ConnectTimeout)

# Only \r\n, \r and \n end a line of job input
LINE_ENDING = re.compile(r"\r\n|\r|\n")

PathLike = Union[str, "os.PathLike[str]"]


def build_query(params: Optional[Mapping[str, Any]]) -> str:
    """Join params as ``k=v`` pairs with ``&``, keeping insertion order."""
    if not params:
        return ""
    return "&".join(f"{quote(str(key), safe='')}={quote(str(value), safe='')}" for key, value in params.items())


def join_lines(text: str) -> str:
    """Normalize line endings to a single newline, dropping a final line terminator."""
    lines = LINE_ENDING.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines)


def _segment(value: str) -> str:
    return quote(value, safe="")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class JobServerClient:
    """Client to upload jars, manage contexts and run jobs on a job server.

    Every call opens its own transport client and closes it before returning.
    When a host cannot be reached, the configured failover policy decides how
    many times the call is retried and against which host.
    """

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        failover_policy: Optional[FailoverPolicy] = None,
        timeout: float = 30.0,
        sticky_failover: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            url: Base URL of the job server
            username: User for basic authentication
            password: Password for basic authentication
            failover_policy: Decides retries and the next host on connectivity failure
            timeout: Transport timeout in seconds
            sticky_failover: Keep using the failover host for later calls.
                The base URL is shared by all threads using this client.
            transport: Custom httpx transport, mainly for tests
        """
        self._base_url = normalize_url(url)
        self.username = username
        self.password = password
        self.failover_policy = failover_policy
        self.timeout = timeout
        self.sticky_failover = sticky_failover
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: ClientSettings, transport: Optional[httpx.BaseTransport] = None
    ) -> "JobServerClient":
        """Create a client from settings, failing over across ``fallback_urls``."""
        failover_policy = None
        if settings.fallback_url_list:
            failover_policy = RoundRobinFailover(settings.fallback_url_list, settings.max_retries)
        return cls(
            settings.url,
            username=settings.username,
            password=settings.password,
            failover_policy=failover_policy,
            timeout=settings.timeout,
            sticky_failover=settings.sticky_failover,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_credentials(self, username: Optional[str], password: Optional[str]) -> None:
        self.username = username
        self.password = password

    def set_failover_policy(self, failover_policy: Optional[FailoverPolicy]) -> None:
        self.failover_policy = failover_policy

    def initialize(self) -> None:
        """Prepare the client; nothing is needed for a plain HTTP client."""

    # Jars

    def list_jars(self) -> List[JarInfo]:
        """Get information of all uploaded jars."""

        def attempt(client: httpx.Client, endpoint: str) -> List[JarInfo]:
            response = client.get(endpoint + "jars")
            body = response.text.strip()
            if response.status_code != httpx.codes.OK:
                response_parser.report_status(endpoint, response.status_code, body, raise_error=True)
            return response_parser.parse_jars(body)

        return self._execute("get information of jars", attempt)

    def upload_jar(self, jar_data: IO[bytes], app_name: str) -> bool:
        """Upload a jar under ``app_name``; the stream is closed afterwards.

        Returns:
            True if the job server accepted the jar, False otherwise

        Raises:
            JobServerClientError: On invalid arguments or when every host is unreachable
        """
        if jar_data is None or _is_blank(app_name):
            raise JobServerClientError("Invalid parameters.")
        try:
            content = jar_data.read()
        except (OSError, ValueError) as e:
            logger.error("Error occurs when reading job jar", app_name=app_name, error=str(e))
            return False
        finally:
            self._close_stream(jar_data)

        def attempt(client: httpx.Client, endpoint: str) -> bool:
            try:
                response = client.post(
                    endpoint + "jars/" + _segment(app_name),
                    content=content,
                    headers={"Content-Type": JAR_CONTENT_TYPE},
                )
            except CONNECTIVITY_ERRORS:
                raise
            except httpx.HTTPError as e:
                logger.error("Error occurs when uploading job jar", app_name=app_name, error=str(e))
                return False
            if response.status_code == httpx.codes.OK:
                return True
            logger.error(
                "Job jar upload rejected",
                endpoint=endpoint,
                app_name=app_name,
                status_code=response.status_code,
                body=response.text.strip(),
            )
            return False

        return self._execute("upload job jar", attempt)

    def upload_jar_file(self, jar_file: PathLike, app_name: str) -> bool:
        """Upload a local ``.jar`` file under ``app_name``."""
        if jar_file is None or not os.fspath(jar_file).endswith(".jar") or _is_blank(app_name):
            raise JobServerClientError("Invalid parameters.")
        try:
            jar_in = open(jar_file, "rb")
        except OSError as e:
            error_msg = "Error occurs when getting stream of the given jar file"
            logger.error(error_msg, jar_file=os.fspath(jar_file), error=str(e))
            raise JobServerClientError(error_msg, e) from e
        return self.upload_jar(jar_in, app_name)

    # Contexts

    def list_contexts(self) -> List[str]:
        """Get the names of all contexts."""

        def attempt(client: httpx.Client, endpoint: str) -> List[str]:
            response = client.get(endpoint + "contexts")
            body = response.text.strip()
            if response.status_code != httpx.codes.OK:
                response_parser.report_status(endpoint, response.status_code, body, raise_error=True)
            return response_parser.parse_contexts(body)

        return self._execute("get information of contexts", attempt)

    def create_context(self, context_name: str, params: Optional[Mapping[str, Any]] = None) -> bool:
        """Create a context, passing ``params`` as query parameters."""

        def attempt(client: httpx.Client, endpoint: str) -> bool:
            if not context_name:
                raise JobServerClientError("The given contextName is null or empty.")
            url = endpoint + "contexts/" + _segment(context_name)
            query = build_query(params)
            if query:
                url += "?" + query
            response = client.post(url)
            if response.status_code == httpx.codes.OK:
                return True
            response_parser.report_status(endpoint, response.status_code, response.text.strip(), raise_error=False)
            return False

        return self._execute("create a context", attempt)

    def delete_context(self, context_name: str) -> bool:
        """Delete a context and stop the jobs running in it."""

        def attempt(client: httpx.Client, endpoint: str) -> bool:
            if not context_name:
                raise JobServerClientError("The given contextName is null or empty.")
            response = client.delete(endpoint + "contexts/" + _segment(context_name))
            if response.status_code == httpx.codes.OK:
                return True
            response_parser.report_status(endpoint, response.status_code, response.text.strip(), raise_error=False)
            return False

        return self._execute("delete the target context", attempt)

    # Jobs

    def list_jobs(self) -> List[JobInfo]:
        """Get information of all jobs."""

        def attempt(client: httpx.Client, endpoint: str) -> List[JobInfo]:
            response = client.get(endpoint + "jobs")
            body = response.text.strip()
            if response.status_code != httpx.codes.OK:
                response_parser.report_status(endpoint, response.status_code, body, raise_error=True)
            return response_parser.parse_jobs(body)

        return self._execute("get information of jobs", attempt)

    def start_job(self, data: Optional[str], params: Mapping[str, Any]) -> JobResult:
        """Start a job.

        Args:
            data: Job input sent as UTF-8 text, may be None
            params: Query parameters, must contain ``appName`` and ``classPath``

        Returns:
            The parsed result; for asynchronous jobs it holds context and job id
        """

        def attempt(client: httpx.Client, endpoint: str) -> JobResult:
            if not params:
                raise JobServerClientError("The given params is null or empty.")
            if JobParam.APP_NAME.value not in params or JobParam.CLASS_PATH.value not in params:
                raise JobServerClientError("The given params should contains appName and classPath")
            url = endpoint + "jobs?" + build_query(params)
            if data is not None:
                response = client.post(url, content=data.encode("utf-8"), headers={"Content-Type": TEXT_CONTENT_TYPE})
            else:
                response = client.post(url)
            body = response.text.strip()
            if response.status_code in (httpx.codes.OK, httpx.codes.ACCEPTED):
                return response_parser.parse_result(body)
            response_parser.report_status(endpoint, response.status_code, body, raise_error=True)

        return self._execute("start a new job", attempt)

    def start_job_from_stream(self, data_stream: IO, params: Mapping[str, Any]) -> JobResult:
        """Start a job with the whole stream as input; the stream is closed afterwards."""
        try:
            data = data_stream.read()
            if isinstance(data, bytes):
                data = data.decode("utf-8")
        except Exception as e:
            logger.error("Error occurs when reading input stream", error=f"{type(e).__name__}: {e}")
            raise JobServerClientError("Error occurs when reading input stream", e) from e
        finally:
            self._close_stream(data_stream)
        return self.start_job(join_lines(data), params)

    def start_job_from_file(self, data_file: PathLike, params: Mapping[str, Any]) -> JobResult:
        """Start a job with the content of a local file as input."""
        try:
            data_stream = open(data_file, "rb")
        except OSError as e:
            logger.error("Error occurs when reading file", data_file=os.fspath(data_file), error=str(e))
            raise JobServerClientError("Error occurs when reading file", e) from e
        return self.start_job_from_stream(data_stream, params)

    def get_job_result(self, job_id: str) -> JobResult:
        """Get the status or result of a job.

        An unknown or unfinished job (404) is not an error: the returned
        result only carries the job id and the response body.
        """

        def attempt(client: httpx.Client, endpoint: str) -> JobResult:
            if not job_id:
                raise JobServerClientError("The given jobId is null or empty.")
            response = client.get(endpoint + "jobs/" + _segment(job_id))
            body = response.text.strip()
            if response.status_code == httpx.codes.OK:
                job_result = response_parser.parse_result(body)
                job_result.job_id = job_id
                return job_result
            if response.status_code == httpx.codes.NOT_FOUND:
                return JobResult(raw=body, job_id=job_id, not_found=True)
            response_parser.report_status(endpoint, response.status_code, body, raise_error=True)

        return self._execute("get information of the target job", attempt)

    def delete_job(self, job_id: str) -> bool:
        """Kill a job."""

        def attempt(client: httpx.Client, endpoint: str) -> bool:
            if not job_id:
                raise JobServerClientError("The given jobId is null or empty.")
            response = client.delete(endpoint + "jobs/" + _segment(job_id))
            if response.status_code == httpx.codes.OK:
                return True
            response_parser.report_status(endpoint, response.status_code, response.text.strip(), raise_error=False)
            return False

        return self._execute("delete the target job", attempt)

    def get_config(self, job_id: str) -> JobConfig:
        """Get the configuration a job was started with."""

        def attempt(client: httpx.Client, endpoint: str) -> JobConfig:
            if not job_id:
                raise JobServerClientError("The given jobId is null or empty.")
            response = client.get(endpoint + "jobs/" + _segment(job_id) + "/config")
            body = response.text.strip()
            if response.status_code != httpx.codes.OK:
                response_parser.report_status(endpoint, response.status_code, body, raise_error=True)
            return response_parser.parse_config(body)

        return self._execute("get information of the target job config", attempt)

    # Request lifecycle

    def _build_client(self) -> httpx.Client:
        auth = None
        if not _is_blank(self.username) and not _is_blank(self.password):
            auth = httpx.BasicAuth(self.username, self.password)
        return httpx.Client(auth=auth, timeout=self.timeout, transport=self._transport)

    def _execute(self, operation: str, attempt: Callable[[httpx.Client, str], T]) -> T:
        """Run ``attempt`` against the current host, failing over while the policy allows."""
        state = RetryState(endpoint=self._base_url)
        while True:
            client = self._build_client()
            try:
                return attempt(client, state.endpoint)
            except CONNECTIVITY_ERRORS as e:
                self._fail_over(operation, state, e)
            except JobServerClientError:
                raise
            except Exception as e:
                error_msg = f"Error occurs when trying to {operation}"
                logger.error(error_msg, endpoint=state.endpoint, error=f"{type(e).__name__}: {e}")
                raise JobServerClientError(error_msg, e) from e
            finally:
                self._close_client(client)

    def _fail_over(self, operation: str, state: RetryState, error: Exception) -> None:
        """Point ``state`` at the next host or raise when retries are exhausted."""
        if self.failover_policy is None:
            error_msg = f"Error occurs when trying to {operation}: job server {state.endpoint} is unreachable"
            logger.error(error_msg, error=str(error))
            raise JobServerClientError(error_msg, error) from error

        retry = state.increment()
        decision = self.failover_policy(retry)
        if retry > decision.max_retries:
            error_msg = f"Error occurs when retry to {operation}, gave up after {retry} attempts"
            logger.error(error_msg, endpoint=state.endpoint, error=str(error))
            raise JobServerClientError(error_msg, error) from error

        next_host = normalize_url(decision.next_host_url)
        logger.warning(
            "Job server unreachable, failing over",
            operation=operation,
            failed_host=state.endpoint,
            next_host=next_host,
            retry=retry,
            max_retries=decision.max_retries,
        )
        state.endpoint = next_host
        if self.sticky_failover:
            self._base_url = next_host

    def _close_client(self, client: httpx.Client) -> None:
        try:
            client.close()
        except Exception as e:
            logger.error("Could not close client", error=str(e))

    def _close_stream(self, stream: IO) -> None:
        try:
            stream.close()
        except OSError as e:
            logger.error("Error occurs when trying to close the stream", error=str(e))


def create_client(url: str, **kwargs: Any) -> JobServerClient:
    """Create a job server client for ``url``."""
    return JobServerClient(url, **kwargs)
