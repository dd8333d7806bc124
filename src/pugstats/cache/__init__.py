"""
Cache layer.

- store: Read-through key/value cache (Redis or in-memory backend)
- debounce: Debounce-with-max-wait state machine
- locks: Per-player asyncio locks shared by page builds and recomputes
- player_list: Debounced all/active player list projections
- player_page: Lazily rebuilt per-player pages
"""

from .debounce import Debouncer, DebounceState
from .locks import KeyedLocks
from .player_list import PlayerListProjector
from .player_page import PlayerPageCache
from .store import (
    ACTIVE_PLAYER_LIST_KEY,
    ALL_PLAYER_LIST_KEY,
    CacheBackend,
    InMemoryBackend,
    ReadThroughCache,
    RedisBackend,
    create_cache,
    player_page_key,
)

__all__ = [
    "ACTIVE_PLAYER_LIST_KEY",
    "ALL_PLAYER_LIST_KEY",
    "CacheBackend",
    "DebounceState",
    "Debouncer",
    "InMemoryBackend",
    "KeyedLocks",
    "PlayerListProjector",
    "PlayerPageCache",
    "ReadThroughCache",
    "RedisBackend",
    "create_cache",
    "player_page_key",
]
