"""Centralized constants and enums for lbmember.

Limits, defaults and remote state names are defined here so the lifecycle,
client and validation layers agree on them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# Member Limits
# =============================================================================

MIN_WEIGHT: Final = 0
MAX_WEIGHT: Final = 256
DEFAULT_WEIGHT: Final = 1

MIN_PORT: Final = 1
MAX_PORT: Final = 65535


# =============================================================================
# Timeouts & Intervals (seconds)
# =============================================================================

DEFAULT_TIMEOUT_MINUTES: Final = 30
DEFAULT_TIMEOUT: Final = DEFAULT_TIMEOUT_MINUTES * 60

TASK_POLL_INTERVAL: Final = 5.0
CONFLICT_RETRY_INTERVAL: Final = 10.0

DEFAULT_REQUEST_TIMEOUT: Final = 30.0


# =============================================================================
# Remote Task States
# =============================================================================


class TaskState(StrEnum):
    """Task states reported by the control plane."""

    NEW = "NEW"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    ERROR = "ERROR"


# =============================================================================
# API
# =============================================================================

DEFAULT_API_URL: Final = "https://api.gcore.com/cloud"
API_TOKEN_ENV: Final = "LBMEMBER_API_TOKEN"

IMPORT_ID_SEPARATOR: Final = "/"

# RFC 850, matches the timestamp layout written on update.
LAST_UPDATED_FORMAT: Final = "%A, %d-%b-%y %H:%M:%S %Z"
