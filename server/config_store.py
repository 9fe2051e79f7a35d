from __future__ import annotations

"""
config_store.py - Persisted cleaning item configuration.

The store owns the single `CleaningItemConfig` the /cleaningitem handlers read
and write: the item itself plus the `active`, `durabilityLoss` and `openEvent`
toggles. Handlers receive the store through `CommandContext`; nothing looks it
up globally.

Persistence:
- `ConfigStore(path)` loads `path` as JSON, falling back to factory defaults if
  the file is missing or unreadable.
- Every setter writes the file immediately (temp file + rename) while holding
  the store's named lock, so concurrent handlers never interleave. Errors are
  logged and swallowed so a full disk never breaks a command.
- `ConfigStore(None)` keeps everything in memory (tests, throwaway servers).
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Optional

from concurrency_utils import atomic
from constants import (
    DEFAULT_DURABILITY_LOSS,
    DEFAULT_ITEM_ACTIVE,
    DEFAULT_ITEM_LORE,
    DEFAULT_ITEM_MATERIAL,
    DEFAULT_ITEM_NAME,
    DEFAULT_OPEN_EVENT,
)
from safe_utils import safe_call_with_default
from world import Item

logger = logging.getLogger(__name__)


def default_item() -> Item:
    return Item(
        material=DEFAULT_ITEM_MATERIAL,
        display_name=DEFAULT_ITEM_NAME,
        lore=list(DEFAULT_ITEM_LORE),
    )


@dataclass
class CleaningItemConfig:
    item: Item = field(default_factory=default_item)
    active: bool = DEFAULT_ITEM_ACTIVE
    durability_loss: bool = DEFAULT_DURABILITY_LOSS
    open_event: bool = DEFAULT_OPEN_EVENT

    def to_dict(self) -> dict:
        return {
            "item": self.item.to_dict(),
            "active": self.active,
            "durability_loss": self.durability_loss,
            "open_event": self.open_event,
        }

    @staticmethod
    def from_dict(data: dict) -> "CleaningItemConfig":
        item_data = data.get("item")
        return CleaningItemConfig(
            item=Item.from_dict(item_data) if isinstance(item_data, dict) else default_item(),
            active=bool(data.get("active", DEFAULT_ITEM_ACTIVE)),
            durability_loss=bool(data.get("durability_loss", DEFAULT_DURABILITY_LOSS)),
            open_event=bool(data.get("open_event", DEFAULT_OPEN_EVENT)),
        )


class ConfigStore:
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        # Every read-modify-write of the config and every save holds this lock
        self.lock_name = f"config_store:{path}" if path else f"config_store:{id(self)}"
        self.config = self._load()
        self.save_count = 0

    def _load(self) -> CleaningItemConfig:
        if not self.path or not os.path.exists(self.path):
            return CleaningItemConfig()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value is not an object")
            return CleaningItemConfig.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load cleaning item config from {self.path}: {e}; using defaults")
            return CleaningItemConfig()

    def save(self) -> bool:
        """Write the config to disk. Returns False when the write failed."""
        if not self.path:
            return True
        with atomic(self.lock_name):
            ok = safe_call_with_default(self._write, False)
            if ok:
                self.save_count += 1
            return ok

    def _write(self) -> bool:
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self.config.to_dict(), f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)
        return True

    def reset(self) -> CleaningItemConfig:
        """Restore factory defaults and persist them."""
        with atomic(self.lock_name):
            self.config = CleaningItemConfig()
            self.save()
            return self.config

    # --- accessors used by the command handlers ---

    def get_cleaning_item(self) -> Item:
        """A copy of the configured item; mutate freely."""
        with atomic(self.lock_name):
            return self.config.item.copy()

    def set_cleaning_item(self, item: Item) -> None:
        with atomic(self.lock_name):
            self.config.item = item.copy()
            self.save()

    def update_item(self, change: Callable[[Item], None]) -> Item:
        """Apply ``change`` to the configured item and persist, as one locked step.

        Returns a copy of the updated item.
        """
        with atomic(self.lock_name):
            item = self.config.item.copy()
            change(item)
            self.config.item = item
            self.save()
            return item.copy()

    def _set_flag(self, attr: str, value: bool) -> None:
        with atomic(self.lock_name):
            setattr(self.config, attr, bool(value))
            self.save()

    def is_cleaning_item_active(self) -> bool:
        return self.config.active

    def set_cleaning_item_active(self, value: bool) -> None:
        self._set_flag("active", value)

    def is_durability_loss_active(self) -> bool:
        return self.config.durability_loss

    def set_durability_loss_active(self, value: bool) -> None:
        self._set_flag("durability_loss", value)

    def is_open_event(self) -> bool:
        return self.config.open_event

    def set_open_event(self, value: bool) -> None:
        self._set_flag("open_event", value)
