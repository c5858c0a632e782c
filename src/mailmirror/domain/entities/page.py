from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PageResult:
    """Outcome of a single sync-folder-items call.

    ``sync_state`` is the token to send with the next request. When the server
    did not return one it is the token the page was requested with.
    """

    item_ids: list[str] = field(default_factory=list)
    sync_state: str = ""
    includes_last_item: bool = False

    @property
    def more_pages(self) -> bool:
        return not self.includes_last_item
