"""Error taxonomy for control plane operations.

Every failure surfaced by lbmember is a ``CloudError`` tagged with an
``ErrorKind``. Callers branch on the kind:

    try:
        state = await lifecycle.delete(state)
    except CloudError as e:
        match e.kind:
            case ErrorKind.TIMEOUT:
                ...
            case _:
                raise
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Closed set of failure categories."""

    VALIDATION = "validation"
    API = "api"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TASK_FAILED = "task_failed"
    TIMEOUT = "timeout"
    EXTRACTION = "extraction"


@dataclass(slots=True, eq=False)
class CloudError(Exception):
    """Failure of a remote call, task wait or local validation.

    Attributes:
        kind: Failure category.
        message: Human readable description.
        task_id: Task the failure relates to, if any.
        status: HTTP status code for API failures (0 for transport errors).
        detail: Raw payload kept for diagnosis (response body, task info).
    """

    kind: ErrorKind
    message: str
    task_id: str | None = None
    status: int | None = None
    detail: Any = None

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        parts = [f"[{self.kind}] {self.message}"]
        if self.task_id:
            parts.append(f"(task {self.task_id})")
        if self.detail is not None and self.kind is ErrorKind.EXTRACTION:
            parts.append(f"raw: {self.detail!r}")
        return " ".join(parts)

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    @property
    def is_conflict(self) -> bool:
        return self.kind is ErrorKind.CONFLICT


class TaskPending(Exception):
    """Raised by a task extraction function when the result is not visible yet.

    ``wait_for_task`` treats it as "poll again"; it never escapes the poller.
    """


def validation_error(field: str, message: str) -> CloudError:
    return CloudError(kind=ErrorKind.VALIDATION, message=f"{field!r} {message}")
