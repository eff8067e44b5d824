from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import aiohttp
from loguru import logger

from lbmember.constants import DEFAULT_REQUEST_TIMEOUT
from lbmember.errors import CloudError, ErrorKind

# ─── Status mapping ──────────────────────────────────────────────────


def kind_for_status(status: int) -> ErrorKind:
    match status:
        case 404:
            return ErrorKind.NOT_FOUND
        case 409:
            return ErrorKind.CONFLICT
        case _:
            return ErrorKind.API


def http_error(status: int, body: str, method: str, path: str) -> CloudError:
    return CloudError(
        kind=kind_for_status(status),
        message=f"{method} {path} failed with HTTP {status}: {body[:500]}",
        status=status,
        detail=body,
    )


# ─── Auth ────────────────────────────────────────────────────────────


@runtime_checkable
class Auth(Protocol):
    def headers(self) -> dict[str, str]: ...


class APIKeyAuth:
    """Permanent API token, sent as ``Authorization: APIKey <token>``."""

    def __init__(self, token: str) -> None:
        self._token = token

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"APIKey {self._token}"}


class BearerAuth:
    def __init__(self, token: str) -> None:
        self._token = token

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}


# ─── Client ──────────────────────────────────────────────────────────


class HttpClient:
    def __init__(
        self,
        base_url: str,
        auth: Auth | None = None,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._default_headers = {"Accept": "application/json", **(default_headers or {})}
        self._session: aiohttp.ClientSession | None = None
        self._log = logger.bind(component="http")

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def _build_headers(self) -> dict[str, str]:
        headers = dict(self._default_headers)
        if self._auth:
            headers.update(self._auth.headers())
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | list[Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty).

        Raises:
            CloudError: NOT_FOUND on 404, CONFLICT on 409, API on any other
                error status or transport failure.
        """
        session = await self._ensure_session()
        self._log.debug("{method} {path}", method=method, path=path)

        try:
            async with session.request(
                method,
                self._url(path),
                headers=self._build_headers(),
                json=json,
                params=params,
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    self._log.warning(
                        "HTTP {status} from {method} {path}: {body}",
                        status=resp.status, method=method, path=path, body=body[:500],
                    )
                    raise http_error(resp.status, body, method, path)
                raw = await resp.read()
                return await resp.json(content_type=None) if raw else None
        except aiohttp.ClientError as e:
            raise CloudError(
                kind=ErrorKind.API,
                message=f"{method} {path} failed: {e}",
                status=0,
            ) from e
        except TimeoutError as e:
            raise CloudError(
                kind=ErrorKind.API,
                message=f"{method} {path} timed out",
                status=0,
            ) from e

    # ─── Lifecycle ───────────────────────────────────────────────────

    async def close(self) -> None:
        if self._session and not self._session.closed:
            self._log.debug("Closing HTTP session")
            await self._session.close()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.close()
