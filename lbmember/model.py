"""Domain model for load balancer pool members.

Three views of a member:

- ``MemberConfig``: desired configuration, validated once at construction.
- ``Member`` / ``Pool``: authoritative remote state, built from API payloads.
- ``MemberState``: the locally tracked resource, threaded through lifecycle
  operations and updated with ``dataclasses.replace``.

``MemberSpec`` is the request-side shape shared by create and pool update.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from lbmember.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_WEIGHT,
    MAX_PORT,
    MAX_WEIGHT,
    MIN_PORT,
    MIN_WEIGHT,
)
from lbmember.errors import validation_error
from lbmember.types import MemberPayload, MemberResponse, PoolResponse

# =============================================================================
# Validation
# =============================================================================


def validate_address(value: object, field_name: str = "address") -> str:
    """Return ``value`` if it is an IPv4 or IPv6 literal.

    Raises:
        CloudError: VALIDATION naming ``field_name``.
    """
    if not isinstance(value, str):
        raise validation_error(field_name, f"must be a valid ip, got: {value!r}")
    try:
        ipaddress.ip_address(value)
    except ValueError:
        raise validation_error(field_name, f"must be a valid ip, got: {value}") from None
    return value


def validate_weight(value: object, field_name: str = "weight") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise validation_error(field_name, f"must be an integer, got: {value!r}")
    if not MIN_WEIGHT <= value <= MAX_WEIGHT:
        raise validation_error(
            field_name, f"valid values: {MIN_WEIGHT} to {MAX_WEIGHT}, got: {value}"
        )
    return value


def validate_port(value: object, field_name: str = "protocol_port") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise validation_error(field_name, f"must be an integer, got: {value!r}")
    if not MIN_PORT <= value <= MAX_PORT:
        raise validation_error(
            field_name, f"valid values: {MIN_PORT} to {MAX_PORT}, got: {value}"
        )
    return value


# =============================================================================
# Desired Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class MemberConfig:
    """Desired configuration of a pool member.

    Validated on construction, so a ``MemberConfig`` that exists is always
    acceptable to the control plane as far as local checks go.

    Example:
        >>> MemberConfig(address="10.0.0.5", protocol_port=8080, weight=5)

    Args:
        address: IP address of the real server.
        protocol_port: Port to communicate with the real server.
        weight: Value between 0 and 256, default 1.
        subnet_id: Subnet the real server is placed in. Assigned by the
            control plane when omitted.
        instance_id: Compute instance backing the member.
    """

    address: str
    protocol_port: int
    weight: int = DEFAULT_WEIGHT
    subnet_id: str | None = None
    instance_id: str | None = None

    def __post_init__(self) -> None:
        validate_address(self.address)
        validate_port(self.protocol_port)
        validate_weight(self.weight)


# =============================================================================
# Remote State
# =============================================================================


@dataclass(frozen=True, slots=True)
class Member:
    """A member as reported by the control plane."""

    id: str
    address: str
    protocol_port: int
    weight: int
    subnet_id: str | None = None
    instance_id: str | None = None
    operating_status: str | None = None

    @classmethod
    def from_response(cls, data: MemberResponse) -> Member:
        return cls(
            id=data["id"],
            address=data["address"],
            protocol_port=data["protocol_port"],
            weight=data["weight"],
            subnet_id=data.get("subnet_id") or None,
            instance_id=data.get("instance_id") or None,
            operating_status=data.get("operating_status"),
        )


@dataclass(frozen=True, slots=True)
class Pool:
    """A load balancer pool and its ordered member collection."""

    id: str
    name: str
    members: tuple[Member, ...] = ()

    @classmethod
    def from_response(cls, data: PoolResponse) -> Pool:
        return cls(
            id=data["id"],
            name=data["name"],
            members=tuple(Member.from_response(m) for m in data.get("members") or ()),
        )

    def find(self, member_id: str | None) -> Member | None:
        if member_id is None:
            return None
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def has_member(self, member_id: str | None) -> bool:
        return self.find(member_id) is not None


# =============================================================================
# Request Shape
# =============================================================================


@dataclass(frozen=True, slots=True)
class MemberSpec:
    """One member entry of a create or pool update request."""

    address: str
    protocol_port: int
    weight: int
    subnet_id: str | None = None
    instance_id: str | None = None
    id: str | None = None

    @classmethod
    def from_config(cls, config: MemberConfig, member_id: str | None = None) -> MemberSpec:
        return cls(
            address=config.address,
            protocol_port=config.protocol_port,
            weight=config.weight,
            subnet_id=config.subnet_id,
            instance_id=config.instance_id,
            id=member_id,
        )

    @classmethod
    def from_member(cls, member: Member) -> MemberSpec:
        return cls(
            address=member.address,
            protocol_port=member.protocol_port,
            weight=member.weight,
            subnet_id=member.subnet_id,
            instance_id=member.instance_id,
            id=member.id,
        )

    def to_payload(self) -> MemberPayload:
        payload: MemberPayload = {
            "address": self.address,
            "protocol_port": self.protocol_port,
            "weight": self.weight,
        }
        if self.id:
            payload["id"] = self.id
        if self.subnet_id:
            payload["subnet_id"] = self.subnet_id
        if self.instance_id:
            payload["instance_id"] = self.instance_id
        return payload


# =============================================================================
# Local Resource State
# =============================================================================


@dataclass(frozen=True, slots=True)
class MemberState:
    """Locally tracked state of one member resource.

    ``id`` is None while the member is absent (before create, after delete).
    """

    project_id: int
    region_id: int
    pool_id: str
    id: str | None = None
    address: str | None = None
    protocol_port: int | None = None
    weight: int = DEFAULT_WEIGHT
    subnet_id: str | None = None
    instance_id: str | None = None
    operating_status: str | None = None
    last_updated: str | None = None

    @property
    def present(self) -> bool:
        return self.id is not None


@dataclass(frozen=True, slots=True)
class Timeouts:
    """Per-operation budgets in seconds."""

    create: float = DEFAULT_TIMEOUT
    update: float = DEFAULT_TIMEOUT
    delete: float = DEFAULT_TIMEOUT

    @classmethod
    def from_minutes(
        cls,
        create: float | None = None,
        update: float | None = None,
        delete: float | None = None,
    ) -> Timeouts:
        default = cls()
        return cls(
            create=create * 60 if create is not None else default.create,
            update=update * 60 if update is not None else default.update,
            delete=delete * 60 if delete is not None else default.delete,
        )


__all__ = [
    "Member",
    "MemberConfig",
    "MemberSpec",
    "MemberState",
    "Pool",
    "Timeouts",
    "validate_address",
    "validate_port",
    "validate_weight",
]