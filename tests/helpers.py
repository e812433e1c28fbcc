# tests/helpers.py
from collections import Counter
from typing import Dict, Mapping, Optional

import httpx

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeClient:
    """Stands in for the network: serves canned bytes and counts every call."""

    def __init__(self, responses: Optional[Dict[str, bytes]] = None, fail_with: Optional[Exception] = None):
        self.responses = dict(responses or {})
        self.fail_with = fail_with
        self.calls: Counter = Counter()
        self.closed = False

    def get(self, url: str, headers: Optional[Mapping[str, str]] = None, timeout: float = 20.0) -> bytes:
        self.calls[url] += 1
        if self.fail_with is not None:
            raise self.fail_with
        if url not in self.responses:
            raise httpx.ConnectError(f"no route to {url}")
        return self.responses[url]

    def close(self) -> None:
        self.closed = True

