"""Member collection reconciliation for pool updates.

The control plane has no per-member update: a member is changed by sending
the pool's entire member collection back. Every member that is not being
updated must therefore be echoed exactly as observed, or it would be
modified or removed.
"""

from __future__ import annotations

from collections.abc import Sequence

from lbmember.model import Member, MemberConfig, MemberSpec


def contains_member(current: Sequence[Member], target_id: str | None) -> bool:
    return target_id is not None and any(m.id == target_id for m in current)


def build_replacement_set(
    current: Sequence[Member],
    target_id: str,
    desired: MemberConfig,
) -> list[MemberSpec]:
    """Build the member collection for a pool update.

    The result has the length and order of ``current``. The member whose ID
    is ``target_id`` takes its fields from ``desired``; all others are copied
    verbatim.

    If ``target_id`` is not in ``current`` the desired change is silently
    lost. Check with ``contains_member`` first.
    """
    return [
        MemberSpec.from_config(desired, member_id=m.id)
        if m.id == target_id
        else MemberSpec.from_member(m)
        for m in current
    ]
