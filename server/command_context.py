from __future__ import annotations

"""Shared command context.

Command handlers receive a `CommandContext` instead of reaching for module
globals: it carries the connected players and the persisted cleaning item
configuration. Keeping it small and explicit makes dependencies visible and
lets tests build one from plain objects without a running Socket.IO server.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from config_store import ConfigStore
from world import World


class Sender(Protocol):
    """Anything that can issue a command: a Player or the ConsoleSender."""

    name: str

    def has_permission(self, token: str) -> bool: ...

    def send(self, payload: dict) -> None: ...


@dataclass(slots=True)
class CommandContext:
    # Connected players (for /cleaningitem give and tab completion)
    world: World = field(default_factory=World)
    # Persisted cleaning item + toggles
    store: ConfigStore = field(default_factory=ConfigStore)

    def find_player(self, name: str) -> Any:
        return self.world.get_player_by_name(name)
