"""Exception hierarchy for the transcription and question-answering API.

WHY: Every failure in a run is fatal, but the CLI and tests still need to
tell a dropped connection from a service-reported job error or a missing
JSON key. Typed exceptions carry enough context (the offending JSON
fragment, the file path, the I/O message) to diagnose without re-running.

HOW: All exceptions derive from AssemblyError so callers can catch the
whole family. Subclasses add structured attributes where useful.

RULES:
- Never raise bare Exception from client, poller, or sink code
- JSON fragments in messages are truncated by _fragment()
- ConfigurationError is also a ValueError (config errors are value errors)
- PollTimeoutError is also a TimeoutError
"""

from __future__ import annotations

import json
from typing import Any

_FRAGMENT_MAX_CHARS = 500


def _fragment(value: Any) -> str:
    """Render a JSON value for an error message, truncated."""
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) > _FRAGMENT_MAX_CHARS:
        text = text[:_FRAGMENT_MAX_CHARS] + "..."
    return text


class AssemblyError(Exception):
    """Base class for every error raised by assembly_cli."""


class ConfigurationError(AssemblyError, ValueError):
    """Raised at startup when required environment configuration is missing."""


class TransportError(AssemblyError):
    """Raised when the HTTP call itself fails (DNS, connect, read, timeout)."""


class MalformedResponse(AssemblyError):
    """Raised when a response body is not valid JSON."""


class AnswerParseError(MalformedResponse):
    """Raised when the "response" list does not match the Answer shape."""


class MissingField(AssemblyError):
    """Raised when an expected key is absent from a JSON response.

    HOW: Keeps the field name and the body it was looked up in, so the
    message shows exactly what the service sent back.
    """

    def __init__(self, field: str, body: Any) -> None:
        self.field = field
        self.body = body
        super().__init__(
            f"'{field}' key not found in response body: {_fragment(body)}"
        )


class MissingIdentifier(MissingField):
    """Raised when a submission response carries no usable string "id"."""

    def __init__(self, body: Any) -> None:
        super().__init__("id", body)


class MissingResponseField(MissingField):
    """Raised when a question response has no top-level "response" key."""

    def __init__(self, body: Any) -> None:
        super().__init__("response", body)


class ServiceReportedError(AssemblyError):
    """Raised when a transcription job reaches the "error" status.

    RULES:
    - error is the service's "error" field, verbatim when it is a string
    - structured error values are JSON-encoded into the message
    - a generic message is used when the field is absent
    """

    def __init__(self, job_id: str, error: Any = None) -> None:
        self.job_id = job_id
        if error is None:
            self.error = "transcription failed without an error message"
        elif isinstance(error, str):
            self.error = error
        else:
            self.error = _fragment(error)
        super().__init__(self.error)


class StorageError(AssemblyError):
    """Raised when the transcript payload cannot be written to disk."""

    def __init__(self, path: Any, message: str) -> None:
        self.path = path
        super().__init__(f"failed to write {path}: {message}")


class PollTimeoutError(AssemblyError, TimeoutError):
    """Raised when polling exhausts its attempt budget or deadline."""


class PollCancelled(AssemblyError):
    """Raised when the cancellation event is set while polling."""


class QuestionFileError(AssemblyError):
    """Raised when the questions file cannot be read or parsed."""
