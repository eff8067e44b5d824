from __future__ import annotations

import itertools
import math
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

import pytest

from lbmember.errors import CloudError, ErrorKind
from lbmember.lifecycle import MemberLifecycle
from lbmember.model import Member, MemberSpec, Pool, Timeouts
from lbmember.retry import RetryConfig, retry_on_conflict
from lbmember.types import TaskIDsResponse, TaskResponse

FAST_POLL = 0.001


@dataclass(slots=True)
class _ScriptedTask:
    task_id: str
    running_polls: int
    final_state: str
    created_resources: dict[str, list[str]] | None = None
    error: str | None = None
    polls: int = 0


@dataclass(slots=True)
class FakeControlPlane:
    """In-memory ``PoolsApi``.

    Mutations are applied as soon as they are accepted; their tasks report
    RUNNING for ``running_polls`` polls before reaching ``final_state``.

    Knobs:
        conflicts: method name -> number of 409s to answer before accepting.
        delete_lag: pool reads that still list a deleted member.
        final_state: terminal state of the next tasks (FINISHED or ERROR).
    """

    running_polls: int = 1
    final_state: str = "FINISHED"
    delete_lag: float = 0
    conflicts: dict[str, int] = field(default_factory=dict)
    pools: dict[str, Pool] = field(default_factory=dict)
    calls: list[tuple[str, ...]] = field(default_factory=list)
    retries: list[RetryConfig] = field(default_factory=list)
    update_payloads: list[list[MemberSpec]] = field(default_factory=list)
    omit_created_resources: bool = False
    _tasks: dict[str, _ScriptedTask] = field(default_factory=dict)
    _removals: dict[tuple[str, str], float] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(100))

    # ─── Setup helpers ───────────────────────────────────────────────

    def add_pool(self, pool_id: str, name: str = "pool", members: Sequence[Member] = ()) -> Pool:
        pool = Pool(id=pool_id, name=name, members=tuple(members))
        self.pools[pool_id] = pool
        return pool

    def member(self, pool_id: str, member_id: str) -> Member | None:
        return self.pools[pool_id].find(member_id)

    # ─── Internals ───────────────────────────────────────────────────

    def _new_task(self, created: dict[str, list[str]] | None = None) -> TaskIDsResponse:
        task_id = f"t-{next(self._ids)}"
        self._tasks[task_id] = _ScriptedTask(
            task_id=task_id,
            running_polls=self.running_polls,
            final_state=self.final_state,
            created_resources=None if self.omit_created_resources else created,
            error="boom" if self.final_state == "ERROR" else None,
        )
        return TaskIDsResponse(tasks=[task_id])

    def _pool(self, pool_id: str) -> Pool:
        pool = self.pools.get(pool_id)
        if pool is None:
            raise CloudError(kind=ErrorKind.NOT_FOUND, message=f"pool {pool_id}", status=404)
        return pool

    def _maybe_conflict(self, method: str) -> None:
        remaining = self.conflicts.get(method, 0)
        if remaining > 0:
            self.conflicts[method] = remaining - 1
            raise CloudError(
                kind=ErrorKind.CONFLICT,
                message="conflicting operation in progress",
                status=409,
            )

    # ─── PoolsApi ────────────────────────────────────────────────────

    async def get_pool(self, pool_id: str) -> Pool:
        self.calls.append(("get_pool", pool_id))
        pool = self._pool(pool_id)
        for (pid, mid), countdown in list(self._removals.items()):
            if pid != pool_id:
                continue
            if countdown <= 0:
                del self._removals[(pid, mid)]
                pool = replace(pool, members=tuple(m for m in pool.members if m.id != mid))
                self.pools[pool_id] = pool
            else:
                self._removals[(pid, mid)] = countdown - 1
        return pool

    async def create_member(
        self, pool_id: str, spec: MemberSpec, *, retry: RetryConfig
    ) -> TaskIDsResponse:
        self.retries.append(retry)

        async def attempt() -> TaskIDsResponse:
            self.calls.append(("create_member", pool_id))
            self._maybe_conflict("create_member")
            pool = self._pool(pool_id)
            member_id = f"m-{next(self._ids)}"
            member = Member(
                id=member_id,
                address=spec.address,
                protocol_port=spec.protocol_port,
                weight=spec.weight,
                subnet_id=spec.subnet_id or "subnet-auto",
                instance_id=spec.instance_id,
                operating_status="ONLINE",
            )
            self.pools[pool_id] = replace(pool, members=(*pool.members, member))
            return self._new_task({"members": [member_id]})

        return await retry_on_conflict(retry, attempt)

    async def update_pool(
        self,
        pool_id: str,
        *,
        name: str,
        members: Sequence[MemberSpec],
        retry: RetryConfig,
    ) -> TaskIDsResponse:
        self.retries.append(retry)

        async def attempt() -> TaskIDsResponse:
            self.calls.append(("update_pool", pool_id))
            self._maybe_conflict("update_pool")
            pool = self._pool(pool_id)
            self.update_payloads.append(list(members))
            updated = []
            for spec in members:
                previous = pool.find(spec.id)
                updated.append(
                    Member(
                        id=spec.id or f"m-{next(self._ids)}",
                        address=spec.address,
                        protocol_port=spec.protocol_port,
                        weight=spec.weight,
                        subnet_id=spec.subnet_id,
                        instance_id=spec.instance_id,
                        operating_status=previous.operating_status if previous else "ONLINE",
                    )
                )
            self.pools[pool_id] = Pool(id=pool.id, name=name, members=tuple(updated))
            return self._new_task({"members": [m.id for m in updated]})

        return await retry_on_conflict(retry, attempt)

    async def delete_member(
        self, pool_id: str, member_id: str, *, retry: RetryConfig
    ) -> TaskIDsResponse:
        self.retries.append(retry)

        async def attempt() -> TaskIDsResponse:
            self.calls.append(("delete_member", pool_id, member_id))
            self._maybe_conflict("delete_member")
            pool = self._pool(pool_id)
            if not pool.has_member(member_id) or (pool_id, member_id) in self._removals:
                raise CloudError(
                    kind=ErrorKind.NOT_FOUND,
                    message=f"member {member_id} not found",
                    status=404,
                )
            self._removals[(pool_id, member_id)] = self.delete_lag
            return self._new_task()

        return await retry_on_conflict(retry, attempt)

    async def get_task(self, task_id: str) -> TaskResponse:
        self.calls.append(("get_task", task_id))
        task = self._tasks.get(task_id)
        if task is None:
            raise CloudError(kind=ErrorKind.NOT_FOUND, message=f"task {task_id}", status=404)
        task.polls += 1
        state = "RUNNING" if task.polls <= task.running_polls else task.final_state
        response: TaskResponse = {"id": task_id, "state": state}
        if state == "FINISHED" and task.created_resources is not None:
            response["created_resources"] = task.created_resources
        if state == "ERROR":
            response["error"] = task.error
        return response


@pytest.fixture
def api() -> FakeControlPlane:
    plane = FakeControlPlane()
    plane.add_pool(
        "p-7",
        name="web",
        members=(
            Member(id="m-1", address="10.0.0.1", protocol_port=80, weight=5,
                   subnet_id="s-1", operating_status="ONLINE"),
            Member(id="m-2", address="10.0.0.2", protocol_port=80, weight=9,
                   subnet_id="s-1", instance_id="i-2", operating_status="ONLINE"),
            Member(id="m-3", address="10.0.0.3", protocol_port=8080, weight=1,
                   subnet_id="s-2", operating_status="OFFLINE"),
        ),
    )
    return plane


@pytest.fixture
def lifecycle(api: FakeControlPlane) -> MemberLifecycle:
    return MemberLifecycle(
        api,
        timeouts=Timeouts(create=1.0, update=1.0, delete=1.0),
        poll_interval=FAST_POLL,
        conflict_interval=FAST_POLL,
    )


NEVER = math.inf
