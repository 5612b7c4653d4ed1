"""Mock transport and response helpers for job server client tests."""

import json
import threading
from typing import Callable, List

import httpx

BASE_URL = "http://jobserver-a:8090/"


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []
        self._lock = threading.Lock()
        super().__init__(self._record(handler))

    def _record(self, handler):
        def record(request: httpx.Request) -> httpx.Response:
            with self._lock:
                self.requests.append(request)
            return handler(request)

        return record

    @property
    def urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]


def json_response(status_code: int, payload) -> httpx.Response:
    return httpx.Response(status_code, text=json.dumps(payload))


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)
