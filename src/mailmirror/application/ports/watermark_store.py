from __future__ import annotations
from datetime import datetime
from typing import Protocol


class WatermarkStore(Protocol):
    # Unknown users return the epoch
    def get(self, user: str) -> datetime: ...
    def put(self, user: str, timestamp: datetime) -> None: ...
