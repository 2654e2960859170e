"""
Mock objects for testing the configuration engine.

Provides a scripted KV client and small builders for KV snapshots.
"""

import asyncio
import json
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple, Union

from consul_config.domain.models import KVListResult, RawEntry
from consul_config.infrastructure.kv_client import KVClient, QueryOptions


def make_entries(data: Dict[str, Any], raw: bool = False) -> Tuple[RawEntry, ...]:
    """Build raw entries; values are JSON-encoded unless ``raw`` is set."""
    entries = []
    for key, value in data.items():
        if value is None:
            encoded = None
        elif raw or isinstance(value, bytes):
            encoded = value if isinstance(value, bytes) else str(value).encode("utf-8")
        else:
            encoded = json.dumps(value).encode("utf-8")
        entries.append(RawEntry(key=key, value=encoded))
    return tuple(entries)


def make_snapshot(data: Dict[str, Any], index: int, raw: bool = False) -> KVListResult:
    return KVListResult(entries=make_entries(data, raw=raw), last_index=index)


class FakeKVClient(KVClient):
    """
    Scripted KV client.

    Each ``list`` call consumes the next queued response (a KVListResult or an
    exception to raise). With nothing queued the call blocks like a long poll
    until a response is pushed or the caller is cancelled.
    """

    def __init__(self, responses: Optional[List[Union[KVListResult, Exception]]] = None):
        self.responses: Deque[Union[KVListResult, Exception]] = deque(responses or [])
        self.calls: List[Tuple[str, QueryOptions]] = []
        self.closed = False
        self._available: Optional[asyncio.Event] = None

    def push(self, response: Union[KVListResult, Exception]) -> None:
        self.responses.append(response)
        if self._available is not None:
            self._available.set()

    async def list(self, prefix: str, options: QueryOptions) -> KVListResult:
        self.calls.append((prefix, options))
        while not self.responses:
            if self._available is None:
                self._available = asyncio.Event()
            self._available.clear()
            await self._available.wait()

        response = self.responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


class ReloadRecorder:
    """Reload callback that records every ChangeSet it receives."""

    def __init__(self):
        self.calls = []

    def __call__(self, changes) -> None:
        self.calls.append(changes)

    @property
    def count(self) -> int:
        return len(self.calls)


async def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()
