from __future__ import annotations

from pathlib import Path

import pytest

from lbmember.lifecycle import MemberLifecycle
from lbmember.model import MemberState
from lbmember.observability.logging import LogConfig, setup_logging, teardown_logging

pytestmark = [pytest.mark.unit]


@pytest.mark.asyncio
async def test_file_sink_carries_context(tmp_path: Path, lifecycle: MemberLifecycle):
    log_file = tmp_path / "logs" / "lbmember.log"
    handler_ids = setup_logging(LogConfig(level="DEBUG", file=str(log_file), console=False))
    try:
        await lifecycle.read(MemberState(project_id=1, region_id=76, pool_id="p-7", id="m-gone"))
    finally:
        teardown_logging(handler_ids)

    text = log_file.read_text()
    assert "Member m-gone not found in pool p-7" in text
    assert "component=lifecycle" in text
    assert "pool_id=p-7" in text
    assert "member_id=m-gone" in text


@pytest.mark.asyncio
async def test_disabled_after_teardown(tmp_path: Path, lifecycle: MemberLifecycle):
    log_file = tmp_path / "lbmember.log"
    teardown_logging(setup_logging(LogConfig(file=str(log_file), console=False)))

    await lifecycle.read(MemberState(project_id=1, region_id=76, pool_id="p-7", id="m-gone"))

    assert log_file.read_text() == ""
