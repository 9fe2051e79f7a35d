"""World model for the ChestCleaner server (small and in-memory).

Concepts:
- Item: a stack with a material, optional display name and lore, damage and amount.
- Player: a connected client (identified by its Socket.IO session id `sid`) with a
  name, a set of permission tokens, an inventory and the item held in main hand.
- ConsoleSender: the server operator; may run every command but is not a player.
- World: the set of currently connected players.

Players and the console are both "senders" as far as commands are concerned:
they expose `name`, `has_permission(token)` and `send(payload)`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from constants import EMPTY_HAND_MATERIAL
from permissions import PERMISSION_WILDCARD

logger = logging.getLogger(__name__)


@dataclass
class Item:
    """An item stack.

    Schema:
    - material: e.g. "iron_hoe"; "air" means an empty hand
    - display_name: custom name with color codes already applied (optional)
    - lore: lines shown under the name
    - damage: durability already used up
    - amount: stack size
    """

    material: str
    display_name: Optional[str] = None
    lore: List[str] = field(default_factory=list)
    damage: int = 0
    amount: int = 1

    def copy(self) -> "Item":
        return Item(
            material=self.material,
            display_name=self.display_name,
            lore=list(self.lore),
            damage=self.damage,
            amount=self.amount,
        )

    def is_empty(self) -> bool:
        return (self.material or '').strip().lower() == EMPTY_HAND_MATERIAL

    def describe(self) -> str:
        """Short human-readable form used in confirmation messages."""
        parts = [f"{self.material} x{self.amount}"]
        if self.display_name:
            parts.append(f"name={self.display_name}")
        if self.lore:
            parts.append(f"lore=[{', '.join(self.lore)}]")
        if self.damage:
            parts.append(f"damage={self.damage}")
        return "ItemStack{" + ", ".join(parts) + "}"

    def to_dict(self) -> dict:
        return {
            "material": self.material,
            "display_name": self.display_name,
            "lore": list(self.lore),
            "damage": self.damage,
            "amount": self.amount,
        }

    @staticmethod
    def from_dict(data: dict) -> "Item":
        lore = data.get("lore") or []
        if not isinstance(lore, list):
            raise TypeError(f"item lore must be a list, got {type(lore).__name__}")
        return Item(
            material=str(data.get("material") or EMPTY_HAND_MATERIAL),
            display_name=data.get("display_name"),
            lore=[str(line) for line in lore],
            damage=int(data.get("damage", 0) or 0),
            amount=int(data.get("amount", 1) or 1),
        )


def empty_hand() -> Item:
    return Item(material=EMPTY_HAND_MATERIAL, amount=0)


@dataclass
class Player:
    sid: str
    name: str
    permissions: Set[str] = field(default_factory=set)
    inventory: List[Item] = field(default_factory=list)
    main_hand: Item = field(default_factory=empty_hand)
    # Transport used by send(); the host binds it to socketio.emit(..., to=sid)
    emit: Optional[Callable[[dict], Any]] = None

    def has_permission(self, token: str) -> bool:
        return PERMISSION_WILDCARD in self.permissions or token in self.permissions

    def send(self, payload: dict) -> None:
        if self.emit is not None:
            self.emit(payload)

    def give(self, item: Item) -> None:
        self.inventory.append(item.copy())


class ConsoleSender:
    """The server operator. Holds every permission; messages go to the log."""

    name = "CONSOLE"

    def __init__(self) -> None:
        self.messages: List[dict] = []

    def has_permission(self, token: str) -> bool:
        return True

    def send(self, payload: dict) -> None:
        self.messages.append(payload)
        logger.info(f"[console] {payload.get('content', '')}")


class World:
    def __init__(self) -> None:
        self.players: Dict[str, Player] = {}

    def add_player(self, player: Player) -> Player:
        self.players[player.sid] = player
        return player

    def remove_player(self, sid: str) -> Optional[Player]:
        return self.players.pop(sid, None)

    def get_player_by_name(self, name: str) -> Optional[Player]:
        """Case-insensitive lookup among connected players."""
        name_lower = (name or '').strip().lower()
        if not name_lower:
            return None
        for player in self.players.values():
            if player.name.lower() == name_lower:
                return player
        return None

    def online_players(self) -> List[Player]:
        return list(self.players.values())
