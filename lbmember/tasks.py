"""Polling of asynchronous control plane tasks.

Every mutating call returns task IDs. ``wait_for_task`` polls one of them
until it reaches a terminal state and hands the finished task to an
extraction function that turns it into the caller's result:

    member_id = await wait_for_task(api, task_id, extract_member_id, timeout=1800)

Extraction functions may raise ``TaskPending`` to ask for another poll,
which is how delete waits for the member to disappear from its pool.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import TypeAlias, TypeVar

from loguru import logger

from lbmember.constants import TASK_POLL_INTERVAL, TaskState
from lbmember.errors import CloudError, ErrorKind, TaskPending
from lbmember.protocols import TaskReader
from lbmember.types import TaskResponse

T = TypeVar("T")

Extractor: TypeAlias = Callable[[TaskResponse], Awaitable[T] | T]


async def wait_for_task(
    api: TaskReader,
    task_id: str,
    extract: Extractor[T],
    *,
    timeout: float,
    stop_on_task_error: bool = True,
    interval: float = TASK_POLL_INTERVAL,
) -> T:
    """Wait until ``task_id`` finishes and return ``extract(task)``.

    Args:
        api: Anything able to fetch a task by ID.
        task_id: Task to wait for.
        extract: Called with the finished task. May be sync or async. Raising
            ``TaskPending`` schedules another poll.
        timeout: Maximum time to wait in seconds.
        stop_on_task_error: Fail as soon as the task reports ERROR. When
            False an errored task is polled until the timeout.
        interval: Time between polls in seconds.

    Returns:
        Whatever ``extract`` returned.

    Raises:
        CloudError: TASK_FAILED, TIMEOUT, EXTRACTION, or the kind of the
            transport error raised while fetching the task.
    """
    log = logger.bind(component="tasks", task_id=task_id)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    polls = 0

    while True:
        polls += 1
        task = await _fetch(api, task_id)
        state = task.get("state")
        log.trace("Task state {state} (poll {n})", state=state, n=polls)

        match state:
            case TaskState.FINISHED:
                try:
                    return await _apply(extract, task)
                except TaskPending as e:
                    log.debug("Task finished, result not visible yet: {reason}", reason=e)
                except CloudError as e:
                    if e.task_id is None:
                        e.task_id = task_id
                    raise
                except Exception as e:
                    raise CloudError(
                        kind=ErrorKind.EXTRACTION,
                        message=f"cannot extract result of task {task_id}: {e}",
                        task_id=task_id,
                        detail=task,
                    ) from e
            case TaskState.ERROR if stop_on_task_error:
                raise CloudError(
                    kind=ErrorKind.TASK_FAILED,
                    message=f"task {task_id} failed: {task.get('error') or 'no error detail'}",
                    task_id=task_id,
                    detail=task,
                )

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise CloudError(
                kind=ErrorKind.TIMEOUT,
                message=f"timeout waiting for task {task_id} after {timeout:.1f}s "
                f"(last state: {state})",
                task_id=task_id,
            )

        await asyncio.sleep(min(interval, remaining))


async def _fetch(api: TaskReader, task_id: str) -> TaskResponse:
    try:
        return await api.get_task(task_id)
    except CloudError as e:
        raise CloudError(
            kind=e.kind,
            message=f"cannot get task with ID {task_id}: {e.message}",
            task_id=task_id,
            status=e.status,
            detail=e.detail,
        ) from e


async def _apply(extract: Extractor[T], task: TaskResponse) -> T:
    result = extract(task)
    if inspect.isawaitable(result):
        return await result
    return result


# =============================================================================
# Extraction
# =============================================================================


def extract_created_ids(task: TaskResponse, resource: str) -> list[str]:
    """Return the IDs of ``resource`` created by ``task``.

    Raises:
        CloudError: EXTRACTION carrying the raw task when none are listed.
    """
    created = task.get("created_resources") or {}
    ids = created.get(resource) if isinstance(created, dict) else None
    if not ids:
        raise CloudError(
            kind=ErrorKind.EXTRACTION,
            message=f"task has no created {resource}",
            task_id=task.get("id"),
            detail=task,
        )
    return [str(i) for i in ids]


def extract_member_id(task: TaskResponse) -> str:
    """Pool member ID created by ``task``."""
    return extract_created_ids(task, "members")[0]


def first_task(task_ids: list[str], operation: str) -> str:
    """Pick the task to wait for from a mutating call's response.

    The control plane returns exactly one relevant task per member call.
    """
    if not task_ids:
        raise CloudError(
            kind=ErrorKind.API,
            message=f"{operation} returned no task",
        )
    return task_ids[0]
