"""Create, read, update, delete and import of a pool member.

Each operation takes the current ``MemberState`` and returns the new one:

    async with settings.create_client() as api:
        lifecycle = MemberLifecycle(api, timeouts=settings.timeouts)
        state = MemberState(project_id=1, region_id=1, pool_id="p-7")
        state = await lifecycle.create(state, MemberConfig("10.0.0.5", 80))
        state = await lifecycle.update(state, MemberConfig("10.0.0.5", 80, weight=10))
        state = await lifecycle.delete(state)

Mutating operations submit under a conflict retry derived from their
timeout, wait for the resulting task, then converge with ``read``. Any
failure raises ``CloudError`` and leaves the input state untouched.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from loguru import logger

from lbmember.constants import LAST_UPDATED_FORMAT, TASK_POLL_INTERVAL
from lbmember.errors import CloudError, ErrorKind, TaskPending
from lbmember.importing import parse_import_id
from lbmember.model import MemberConfig, MemberSpec, MemberState, Timeouts
from lbmember.protocols import PoolsApi
from lbmember.reconcile import build_replacement_set, contains_member
from lbmember.retry import RetryConfig, conflict_retry_config
from lbmember.tasks import extract_created_ids, extract_member_id, first_task, wait_for_task
from lbmember.types import TaskResponse


class MemberLifecycle:
    """Converges a pool member with its desired configuration.

    Args:
        api: Control plane client.
        timeouts: Budgets for create, update and delete.
        poll_interval: Seconds between task polls.
        conflict_interval: Seconds between conflict retries. Defaults to the
            client-wide interval.
    """

    def __init__(
        self,
        api: PoolsApi,
        *,
        timeouts: Timeouts | None = None,
        poll_interval: float = TASK_POLL_INTERVAL,
        conflict_interval: float | None = None,
    ) -> None:
        self._api = api
        self._timeouts = timeouts or Timeouts()
        self._poll_interval = poll_interval
        self._conflict_interval = conflict_interval
        self._log = logger.bind(component="lifecycle")

    @property
    def timeouts(self) -> Timeouts:
        return self._timeouts

    def _retry(self, timeout: float) -> RetryConfig:
        if self._conflict_interval is None:
            return conflict_retry_config(timeout)
        return conflict_retry_config(timeout, self._conflict_interval)

    # =========================================================================
    # Create
    # =========================================================================

    async def create(self, state: MemberState, desired: MemberConfig) -> MemberState:
        """Attach a new member to ``state.pool_id`` and return its refreshed state."""
        log = self._log.bind(pool_id=state.pool_id)
        log.debug("Start member creating")
        timeout = self._timeouts.create

        result = await self._api.create_member(
            state.pool_id,
            MemberSpec.from_config(desired),
            retry=self._retry(timeout),
        )
        task_id = first_task(result["tasks"], "create member")
        member_id = await wait_for_task(
            self._api,
            task_id,
            extract_member_id,
            timeout=timeout,
            interval=self._poll_interval,
        )

        created = replace(
            state,
            id=member_id,
            address=desired.address,
            protocol_port=desired.protocol_port,
            weight=desired.weight,
            subnet_id=desired.subnet_id,
            instance_id=desired.instance_id,
        )
        created = await self.read(created)
        log.debug("Finish member creating ({member_id})", member_id=member_id)
        return created

    # =========================================================================
    # Read
    # =========================================================================

    async def read(self, state: MemberState) -> MemberState:
        """Refresh ``state`` from the pool's authoritative member collection.

        When the member is no longer listed, the state is returned unchanged.
        """
        log = self._log.bind(pool_id=state.pool_id, member_id=state.id)
        log.debug("Start member reading")

        pool = await self._api.get_pool(state.pool_id)
        member = pool.find(state.id)
        if member is None:
            log.warning("Member {member_id} not found in pool {pool_id}",
                        member_id=state.id, pool_id=state.pool_id)
            return state

        log.debug("Finish member reading")
        return replace(
            state,
            address=member.address,
            protocol_port=member.protocol_port,
            weight=member.weight,
            subnet_id=member.subnet_id,
            instance_id=member.instance_id,
            operating_status=member.operating_status,
        )

    async def exists(self, state: MemberState) -> bool:
        """Whether ``state``'s member is currently listed in its pool."""
        if not state.present:
            return False
        pool = await self._api.get_pool(state.pool_id)
        return pool.has_member(state.id)

    # =========================================================================
    # Update
    # =========================================================================

    async def update(self, state: MemberState, desired: MemberConfig) -> MemberState:
        """Apply ``desired`` to the member by replacing the pool's member set.

        Raises:
            CloudError: NOT_FOUND when the member is not in the pool.
        """
        member_id = _require_id(state, "update")
        log = self._log.bind(pool_id=state.pool_id, member_id=member_id)
        log.debug("Start member updating")
        timeout = self._timeouts.update

        pool = await self._api.get_pool(state.pool_id)
        if not contains_member(pool.members, member_id):
            raise CloudError(
                kind=ErrorKind.NOT_FOUND,
                message=f"member {member_id} is not in pool {pool.id}",
            )

        members = build_replacement_set(pool.members, member_id, desired)
        result = await self._api.update_pool(
            pool.id,
            name=pool.name,
            members=members,
            retry=self._retry(timeout),
        )
        task_id = first_task(result["tasks"], "update pool")

        def affected_member(task: TaskResponse) -> str | None:
            try:
                affected = extract_created_ids(task, "members")
            except CloudError:
                return None
            log.debug("Pool update task {task_id} touched members {ids}",
                      task_id=task_id, ids=affected)
            return affected[0]

        await wait_for_task(
            self._api,
            task_id,
            affected_member,
            timeout=timeout,
            interval=self._poll_interval,
        )

        stamp = datetime.now().astimezone().strftime(LAST_UPDATED_FORMAT)
        updated = replace(state, last_updated=stamp)
        log.debug("Finish member updating")
        return await self.read(updated)

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete(self, state: MemberState) -> MemberState:
        """Detach the member and return the state with its identity cleared.

        A member that is already gone counts as deleted.
        """
        if not state.present:
            return state
        member_id = _require_id(state, "delete")
        log = self._log.bind(pool_id=state.pool_id, member_id=member_id)
        log.debug("Start member deleting")
        timeout = self._timeouts.delete

        try:
            result = await self._api.delete_member(
                state.pool_id,
                member_id,
                retry=self._retry(timeout),
            )
        except CloudError as e:
            if not e.is_not_found:
                raise
            log.debug("Member already gone, finish of member deleting")
            return replace(state, id=None)

        task_id = first_task(result["tasks"], "delete member")

        async def member_gone(_: TaskResponse) -> None:
            pool = await self._api.get_pool(state.pool_id)
            if pool.has_member(member_id):
                raise TaskPending(f"pool member {member_id} still exists")

        await wait_for_task(
            self._api,
            task_id,
            member_gone,
            timeout=timeout,
            interval=self._poll_interval,
        )

        log.debug("Finish of member deleting")
        return replace(state, id=None)

    # =========================================================================
    # Import
    # =========================================================================

    def import_state(self, import_id: str) -> MemberState:
        """Adopt an existing member from ``"<project>/<region>/<member>/<pool>"``.

        Only identifying fields are set; follow with ``read``.
        """
        parsed = parse_import_id(import_id)
        self._log.debug("Importing member {id}", id=parsed)
        return MemberState(
            project_id=parsed.project_id,
            region_id=parsed.region_id,
            pool_id=parsed.pool_id,
            id=parsed.member_id,
        )


def _require_id(state: MemberState, operation: str) -> str:
    if state.id is None:
        raise CloudError(
            kind=ErrorKind.VALIDATION,
            message=f"cannot {operation} a member without an id",
        )
    return state.id
