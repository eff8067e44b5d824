"""Async HTTP client for the load balancer pools API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from lbmember.constants import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT
from lbmember.errors import CloudError, ErrorKind
from lbmember.infra.http import APIKeyAuth, Auth, HttpClient
from lbmember.model import MemberSpec, Pool
from lbmember.retry import NO_RETRY, RetryConfig, retry_on_conflict
from lbmember.types import PoolResponse, PoolUpdatePayload, TaskIDsResponse, TaskResponse


class LBPoolsClient:
    """Async client for load balancer pools, scoped to one project and region.

    Implements ``PoolsApi``. Mutating methods retry on 409 according to the
    ``RetryConfig`` they are given.

    Example:
        async with LBPoolsClient(token="...", project_id=1, region_id=76) as api:
            pool = await api.get_pool("p-7")
    """

    def __init__(
        self,
        *,
        project_id: int,
        region_id: int,
        token: str | None = None,
        auth: Auth | None = None,
        base_url: str = DEFAULT_API_URL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        if auth is None and token is not None:
            auth = APIKeyAuth(token)
        self._project_id = project_id
        self._region_id = region_id
        self._http = HttpClient(
            base_url,
            auth,
            timeout=request_timeout,
            default_headers={"Content-Type": "application/json"},
        )

    @property
    def project_id(self) -> int:
        return self._project_id

    @property
    def region_id(self) -> int:
        return self._region_id

    async def __aenter__(self) -> LBPoolsClient:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    def _pools_path(self, pool_id: str, *rest: str) -> str:
        parts = ["/v1/lbpools", str(self._project_id), str(self._region_id), pool_id, *rest]
        return "/".join(parts)

    async def _mutate(
        self,
        method: str,
        path: str,
        retry: RetryConfig,
        json: dict[str, Any] | None = None,
    ) -> TaskIDsResponse:
        data = await retry_on_conflict(
            retry, lambda: self._http.request(method, path, json=json)
        )
        if not isinstance(data, dict) or "tasks" not in data:
            raise CloudError(
                kind=ErrorKind.API,
                message=f"{method} {path} returned no task list",
                detail=data,
            )
        return TaskIDsResponse(tasks=[str(t) for t in data["tasks"] or []])

    # =========================================================================
    # Pools
    # =========================================================================

    async def get_pool(self, pool_id: str) -> Pool:
        data: PoolResponse = await self._http.request("GET", self._pools_path(pool_id))
        return Pool.from_response(data)

    async def update_pool(
        self,
        pool_id: str,
        *,
        name: str,
        members: Sequence[MemberSpec],
        retry: RetryConfig = NO_RETRY,
    ) -> TaskIDsResponse:
        body: PoolUpdatePayload = {
            "name": name,
            "members": [m.to_payload() for m in members],
        }
        return await self._mutate("PATCH", self._pools_path(pool_id), retry, dict(body))

    # =========================================================================
    # Members
    # =========================================================================

    async def create_member(
        self,
        pool_id: str,
        spec: MemberSpec,
        *,
        retry: RetryConfig = NO_RETRY,
    ) -> TaskIDsResponse:
        return await self._mutate(
            "POST", self._pools_path(pool_id, "member"), retry, dict(spec.to_payload())
        )

    async def delete_member(
        self,
        pool_id: str,
        member_id: str,
        *,
        retry: RetryConfig = NO_RETRY,
    ) -> TaskIDsResponse:
        return await self._mutate(
            "DELETE", self._pools_path(pool_id, "member", member_id), retry
        )

    # =========================================================================
    # Tasks
    # =========================================================================

    async def get_task(self, task_id: str) -> TaskResponse:
        data: TaskResponse = await self._http.request("GET", f"/v1/tasks/{task_id}")
        return data
