"""
Consul KV Client

Reads key/value snapshots from the Consul HTTP API with blocking-query
(long-poll) support.
"""

import asyncio
import base64
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional, List
from urllib.parse import quote

import aiohttp

from ..domain.models import KVListResult, RawEntry
from .exceptions import TransportError

logger = logging.getLogger(__name__)

# Extra time granted on top of the blocking wait before the client gives up
REQUEST_TIMEOUT_MARGIN = 5.0


@dataclass(frozen=True)
class QueryOptions:
    """Per-request options of a KV list query."""
    token: Optional[str] = None
    datacenter: Optional[str] = None
    wait_index: int = 0
    wait_time: Optional[float] = None

    @property
    def is_blocking(self) -> bool:
        return self.wait_index > 0 and bool(self.wait_time)


class KVClient(ABC):
    """Interface of the remote KV store as seen by the watch loop."""

    @abstractmethod
    async def list(self, prefix: str, options: QueryOptions) -> KVListResult:
        """
        List every entry below ``prefix``.

        Blocks up to ``options.wait_time`` when ``options.wait_index`` is set.

        Raises:
            TransportError: when the store cannot be reached or rejects the request.
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class ConsulKVClient(KVClient):
    """KV client for the Consul HTTP API built on aiohttp."""

    def __init__(self, address: str, token: Optional[str] = None, datacenter: Optional[str] = None):
        self.address = address.rstrip("/")
        self.token = token
        self.datacenter = datacenter
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure HTTP session is created."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _headers(self, options: QueryOptions) -> Dict[str, str]:
        token = options.token or self.token
        return {"X-Consul-Token": token} if token else {}

    def _params(self, options: QueryOptions) -> Dict[str, str]:
        params = {"recurse": "true"}
        datacenter = options.datacenter or self.datacenter
        if datacenter:
            params["dc"] = datacenter
        if options.is_blocking:
            params["index"] = str(options.wait_index)
            # Consul waits in whole seconds and treats 0s as its own default
            params["wait"] = f"{max(1, math.ceil(options.wait_time))}s"
        return params

    @staticmethod
    def _timeout(options: QueryOptions) -> aiohttp.ClientTimeout:
        if not options.is_blocking:
            return aiohttp.ClientTimeout(total=30.0)
        # Consul adds up to wait/16 of jitter to a blocking query
        return aiohttp.ClientTimeout(total=options.wait_time * 17 / 16 + REQUEST_TIMEOUT_MARGIN)

    async def list(self, prefix: str, options: QueryOptions) -> KVListResult:
        session = await self._ensure_session()
        url = f"{self.address}/v1/kv/{quote(prefix)}"

        try:
            async with session.get(
                url,
                params=self._params(options),
                headers=self._headers(options),
                timeout=self._timeout(options),
            ) as response:
                last_index = _parse_index(response.headers.get("X-Consul-Index"))

                if response.status == 404:
                    return KVListResult(entries=(), last_index=last_index)
                if response.status >= 400:
                    body = await response.text()
                    raise TransportError(
                        f"KV list failed with HTTP {response.status}: {body.strip()}",
                        status_code=response.status,
                        endpoint=url,
                    )

                payload = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise TransportError(
                f"KV list timed out for prefix '{prefix}'",
                endpoint=url,
                cause=e,
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(
                f"KV list failed for prefix '{prefix}': {e}",
                endpoint=url,
                cause=e,
            ) from e
        except ValueError as e:
            raise TransportError(
                f"KV list returned a malformed body for prefix '{prefix}'",
                endpoint=url,
                cause=e,
            ) from e

        return KVListResult(entries=tuple(_to_entries(payload)), last_index=last_index)


def _parse_index(raw: Optional[str]) -> int:
    try:
        return int(raw) if raw else 0
    except ValueError:
        logger.warning(f"Ignoring malformed X-Consul-Index header: {raw}")
        return 0


def _to_entries(payload: Optional[List[Dict[str, Any]]]) -> List[RawEntry]:
    entries = []
    for item in payload or []:
        value = item.get("Value")
        entries.append(RawEntry(
            key=item["Key"],
            value=base64.b64decode(value) if value is not None else None,
        ))
    return entries
