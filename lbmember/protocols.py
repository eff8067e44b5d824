"""Protocol definitions for the control plane API.

Lifecycle operations depend on these protocols rather than on the concrete
HTTP client, so any implementation (``LBPoolsClient``, an in-memory fake)
can be injected.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from lbmember.model import MemberSpec, Pool
    from lbmember.retry import RetryConfig
    from lbmember.types import TaskIDsResponse, TaskResponse


@runtime_checkable
class TaskReader(Protocol):
    """Read access to asynchronous tasks."""

    async def get_task(self, task_id: str) -> TaskResponse:
        """Fetch the current status of a task."""
        ...


@runtime_checkable
class PoolsApi(TaskReader, Protocol):
    """Load balancer pool operations consumed by the member lifecycle.

    Mutating methods apply ``retry`` to their own request, retrying while the
    pool reports a conflicting operation in progress.
    """

    async def get_pool(self, pool_id: str) -> Pool:
        """Fetch a pool with its member collection."""
        ...

    async def create_member(
        self,
        pool_id: str,
        spec: MemberSpec,
        *,
        retry: RetryConfig,
    ) -> TaskIDsResponse:
        """Attach a new member to a pool."""
        ...

    async def update_pool(
        self,
        pool_id: str,
        *,
        name: str,
        members: Sequence[MemberSpec],
        retry: RetryConfig,
    ) -> TaskIDsResponse:
        """Replace the pool's whole member collection."""
        ...

    async def delete_member(
        self,
        pool_id: str,
        member_id: str,
        *,
        retry: RetryConfig,
    ) -> TaskIDsResponse:
        """Detach a member. Raises NOT_FOUND when it is already gone."""
        ...
