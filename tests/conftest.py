"""Shared fixtures for job server client tests."""

import pytest

from jobserver_client import JobServerClient
from tests.helpers import BASE_URL, RecordingTransport


@pytest.fixture
def make_client():
    """Build a client whose requests are answered by ``handler``."""

    def factory(handler, **kwargs):
        transport = RecordingTransport(handler)
        client = JobServerClient(kwargs.pop("url", BASE_URL), transport=transport, **kwargs)
        return client, transport

    return factory
