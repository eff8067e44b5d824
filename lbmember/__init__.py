"""lbmember - Load balancer pool members on an asynchronous cloud control plane.

Example:

    from lbmember import MemberConfig, MemberLifecycle, MemberState, load_settings

    settings = load_settings()

    async with settings.create_client() as api:
        lifecycle = MemberLifecycle(api, timeouts=settings.timeouts)
        state = MemberState(
            project_id=settings.project_id,
            region_id=settings.region_id,
            pool_id="p-7",
        )
        state = await lifecycle.create(state, MemberConfig(address="10.0.0.5", protocol_port=80))
"""

from lbmember.client import LBPoolsClient
from lbmember.config import Settings, load_config, load_settings
from lbmember.errors import CloudError, ErrorKind, TaskPending
from lbmember.importing import ImportID, format_import_id, parse_import_id
from lbmember.lifecycle import MemberLifecycle
from lbmember.model import Member, MemberConfig, MemberSpec, MemberState, Pool, Timeouts
from lbmember.observability import LogConfig, setup_logging, teardown_logging
from lbmember.protocols import PoolsApi, TaskReader
from lbmember.reconcile import build_replacement_set, contains_member
from lbmember.retry import RetryConfig, conflict_retry_config, retry_on_conflict
from lbmember.tasks import extract_member_id, wait_for_task

__all__ = [
    "CloudError",
    "ErrorKind",
    "ImportID",
    "LBPoolsClient",
    "LogConfig",
    "Member",
    "MemberConfig",
    "MemberLifecycle",
    "MemberSpec",
    "MemberState",
    "Pool",
    "PoolsApi",
    "RetryConfig",
    "Settings",
    "TaskPending",
    "TaskReader",
    "Timeouts",
    "build_replacement_set",
    "conflict_retry_config",
    "contains_member",
    "extract_member_id",
    "format_import_id",
    "load_config",
    "load_settings",
    "parse_import_id",
    "retry_on_conflict",
    "setup_logging",
    "teardown_logging",
    "wait_for_task",
]
