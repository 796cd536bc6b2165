"""Structured failures raised by the AI backend client."""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    QUOTA_EXHAUSTED = "quota_exhausted"
    INVALID_CREDENTIAL = "invalid_credential"
    MALFORMED_PAYLOAD = "malformed_payload"
    NETWORK = "network"
    UNKNOWN = "unknown"


class BackendError(Exception):
    """A backend call failed; ``kind`` says how."""

    def __init__(self, kind: ErrorKind, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or kind.value)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_timeout(self) -> bool:
        return self.kind is ErrorKind.TIMEOUT

    @property
    def is_credential_problem(self) -> bool:
        """Quota and key problems need the user to pick another key."""
        return self.kind in (ErrorKind.QUOTA_EXHAUSTED, ErrorKind.INVALID_CREDENTIAL)

    def __repr__(self) -> str:
        return f"BackendError({self.kind.value!r}, {str(self)!r}, status_code={self.status_code})"
