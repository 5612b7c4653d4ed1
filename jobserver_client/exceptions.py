"""Job server client exceptions."""

from typing import Any, Dict, Optional


class JobServerClientError(Exception):
    """Raised for every failure reported by the job server client."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for diagnostics."""
        result = {"message": self.message}
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result
