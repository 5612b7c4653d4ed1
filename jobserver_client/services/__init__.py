"""Service modules for talking to the job server."""

from .http_client import JobServerClient, build_query, create_client
from .response_parser import parse_result

__all__ = ["JobServerClient", "build_query", "create_client", "parse_result"]
