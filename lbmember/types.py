"""Control plane API payload types.

TypedDicts for API responses - no conversion needed.
"""

from __future__ import annotations

from typing import NotRequired, TypedDict


class MemberResponse(TypedDict):
    """Pool member as listed in a pool response."""

    id: str
    address: str
    protocol_port: int
    weight: int
    subnet_id: NotRequired[str | None]
    instance_id: NotRequired[str | None]
    operating_status: NotRequired[str | None]
    provisioning_status: NotRequired[str | None]


class PoolResponse(TypedDict):
    """Load balancer pool."""

    id: str
    name: str
    members: list[MemberResponse]
    lb_algorithm: NotRequired[str]
    protocol: NotRequired[str]
    provisioning_status: NotRequired[str]
    operating_status: NotRequired[str]


class TaskIDsResponse(TypedDict):
    """Response of every mutating call."""

    tasks: list[str]


class TaskResponse(TypedDict):
    """Asynchronous task status."""

    id: str
    state: str
    task_type: NotRequired[str]
    created_resources: NotRequired[dict[str, list[str]] | None]
    error: NotRequired[str | None]
    created_on: NotRequired[str]
    finished_on: NotRequired[str | None]


class MemberPayload(TypedDict):
    """Member entry of a create or pool update request."""

    address: str
    protocol_port: int
    weight: int
    id: NotRequired[str]
    subnet_id: NotRequired[str]
    instance_id: NotRequired[str]


class PoolUpdatePayload(TypedDict):
    """Body of a pool update request."""

    name: str
    members: list[MemberPayload]
