"""TOML-based client and lifecycle configuration.

Loads ~/.lbmember/defaults.toml (global) and lbmember.toml (project),
merges them, and resolves the result into ``Settings``:

    [api]
    url = "https://api.gcore.com/cloud"
    token = "..."            # or LBMEMBER_API_TOKEN
    request_timeout = 30

    [location]
    project_id = 1
    region_id = 76

    [timeouts]               # minutes
    create = 30
    update = 30
    delete = 30

    [logging]
    level = "INFO"
    file = ".lbmember/lbmember.log"
    console = true
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeAlias

from lbmember.constants import API_TOKEN_ENV, DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT
from lbmember.model import Timeouts
from lbmember.observability.logging import LogConfig

if TYPE_CHECKING:
    from lbmember.client import LBPoolsClient

RawConfig: TypeAlias = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".lbmember" / "defaults.toml"
PROJECT_CONFIG_NAME = "lbmember.toml"


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    for section in ("api", "location", "timeouts", "logging"):
        merged.setdefault(section, {})
    return merged


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration.

    Args:
        project_id: Project the client operates in.
        region_id: Region the client operates in.
        api_url: Control plane base URL.
        api_token: API token. Falls back to LBMEMBER_API_TOKEN.
        request_timeout: Per-request HTTP timeout in seconds.
        timeouts: Create/update/delete budgets.
        logging: Log sink configuration.
    """

    project_id: int
    region_id: int
    api_url: str = DEFAULT_API_URL
    api_token: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    timeouts: Timeouts = field(default_factory=Timeouts)
    logging: LogConfig = field(default_factory=LogConfig)

    @property
    def api_token_resolved(self) -> str:
        token = self.api_token or os.environ.get(API_TOKEN_ENV)
        if not token:
            raise ValueError(f"No API token configured. Set [api].token or {API_TOKEN_ENV}.")
        return token

    def create_client(self) -> LBPoolsClient:
        from lbmember.client import LBPoolsClient

        return LBPoolsClient(
            project_id=self.project_id,
            region_id=self.region_id,
            token=self.api_token_resolved,
            base_url=self.api_url,
            request_timeout=self.request_timeout,
        )


def _require_int(section: RawConfig, key: str) -> int:
    value = section.get(key)
    if value is None:
        raise ValueError(f"[location] missing '{key}'")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"[location] '{key}' must be an integer, got: {value!r}")
    return value


def load_settings(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> Settings:
    config = load_config(project_dir=project_dir, global_path=global_path)

    api = config["api"]
    location = config["location"]
    timeouts = config["timeouts"]

    unknown = set(timeouts) - {"create", "update", "delete"}
    if unknown:
        raise ValueError(f"Unknown [timeouts] keys: {', '.join(sorted(unknown))}")

    return Settings(
        project_id=_require_int(location, "project_id"),
        region_id=_require_int(location, "region_id"),
        api_url=api.get("url", DEFAULT_API_URL),
        api_token=api.get("token"),
        request_timeout=float(api.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
        timeouts=Timeouts.from_minutes(**timeouts),
        logging=LogConfig(**config["logging"]),
    )
