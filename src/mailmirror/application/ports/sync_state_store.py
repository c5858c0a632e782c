from __future__ import annotations
from typing import Protocol


class SyncStateStore(Protocol):
    # Unknown (user, folder) pairs return the initial empty token
    def get(self, user: str, folder: str) -> str: ...
    def put(self, user: str, folder: str, token: str) -> None: ...
