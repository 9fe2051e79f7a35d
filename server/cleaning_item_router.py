from __future__ import annotations

"""Cleaning Item Router.

Implements `/cleaningitem`, the command that hands out and configures the
cleaning item:

    /cleaningitem get                          give yourself the item
    /cleaningitem give <@a|player>             give it to everyone / one player
    /cleaningitem set                          use the item in your main hand
    /cleaningitem name [name...]               show / set the display name
    /cleaningitem lore [lore...]               show / set the lore ("/n" splits lines)
    /cleaningitem active [true|false]          show / toggle whether the item works
    /cleaningitem durabilityLoss [true|false]  show / toggle durability loss
    /cleaningitem openEvent [true|false]       show / toggle open-event mode

Routing is done by a `CommandTree`; every handler below checks its own
permission before touching the config store.
"""

import logging
from typing import Iterable, List, Sequence

from argument_validator import ArgumentType, boolean_vocabulary
from command_context import CommandContext, Sender
from command_tree import CommandTree, CommandTuple, DispatchResult, TypedEdge
from constants import (
    ALL_PLAYERS_SELECTOR,
    COLOR_CODE_INPUT,
    COLOR_CODE_OUTPUT,
    LORE_LINE_SEPARATOR,
    NULL_VALUE_DISPLAY,
)
from message_service import (
    MessageID,
    MessageType,
    send_changed_value,
    send_current_value,
    send_message,
    send_permission_error,
)
from permissions import Permission
from world import Player

logger = logging.getLogger(__name__)

COMMAND_ALIAS = "cleaningitem"

# sub-commands
GET_SUB_COMMAND = "get"
SET_SUB_COMMAND = "set"
GIVE_SUB_COMMAND = "give"
NAME_SUB_COMMAND = "name"
LORE_SUB_COMMAND = "lore"
ACTIVE_SUB_COMMAND = "active"
DURABILITY_LOSS_SUB_COMMAND = "durabilityLoss"
OPEN_EVENT_SUB_COMMAND = "openEvent"

# typed capture names; "player" is also what tab completion keys on
PLAYER_CAPTURE = "player"

NAME_PROPERTY = f"{COMMAND_ALIAS} {NAME_SUB_COMMAND}"
LORE_PROPERTY = f"{COMMAND_ALIAS} {LORE_SUB_COMMAND}"
ACTIVE_PROPERTY = f"{COMMAND_ALIAS} {ACTIVE_SUB_COMMAND}"
DURABILITY_PROPERTY = f"{COMMAND_ALIAS} {DURABILITY_LOSS_SUB_COMMAND}"
OPEN_EVENT_PROPERTY = f"{COMMAND_ALIAS} {OPEN_EVENT_SUB_COMMAND}"


def colorize(text: str) -> str:
    return text.replace(COLOR_CODE_INPUT, COLOR_CODE_OUTPUT)


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


class CleaningItemCommand:
    """The /cleaningitem command: its tree, its handlers and its completions."""

    def __init__(self, ctx: CommandContext):
        self.ctx = ctx
        self.tree = CommandTree(COMMAND_ALIAS)
        root = f"/{COMMAND_ALIAS}"

        self.tree.add_path(f"{root} {GET_SUB_COMMAND}", self.get_cleaning_item)

        self.tree.add_path(f"{root} {GIVE_SUB_COMMAND} {ALL_PLAYERS_SELECTOR}", self.give_cleaning_item_to_all)
        self.tree.add_path(f"{root} {GIVE_SUB_COMMAND} {PLAYER_CAPTURE}", self.give_cleaning_item,
                           ArgumentType.TEXT)

        self.tree.add_path(f"{root} {SET_SUB_COMMAND}", self.set_cleaning_item)

        for sub in (NAME_SUB_COMMAND, LORE_SUB_COMMAND, ACTIVE_SUB_COMMAND,
                    DURABILITY_LOSS_SUB_COMMAND, OPEN_EVENT_SUB_COMMAND):
            self.tree.add_path(f"{root} {sub}", self.get_config)

        self.tree.add_path(f"{root} {NAME_SUB_COMMAND} name", self.set_item_name, ArgumentType.TEXT, greedy=True)
        self.tree.add_path(f"{root} {LORE_SUB_COMMAND} lore", self.set_item_lore, ArgumentType.TEXT, greedy=True)

        self.tree.add_path(f"{root} {ACTIVE_SUB_COMMAND} true/false", self.set_cleaning_item_active,
                           ArgumentType.BOOLEAN)
        self.tree.add_path(f"{root} {DURABILITY_LOSS_SUB_COMMAND} true/false", self.set_durability_loss,
                           ArgumentType.BOOLEAN)
        self.tree.add_path(f"{root} {OPEN_EVENT_SUB_COMMAND} true/false", self.set_open_event_mode,
                           ArgumentType.BOOLEAN)

    @property
    def aliases(self) -> List[str]:
        return [COMMAND_ALIAS]

    def on_command(self, sender: Sender, alias: str, args: Sequence[str]) -> DispatchResult:
        return self.tree.execute(sender, alias, args)

    # --- handlers ---

    def get_config(self, command: CommandTuple) -> None:
        """Report the current value of the property named by args[0]."""
        sub = command.args[0].lower()
        store = self.ctx.store
        item = store.get_cleaning_item()

        if sub == NAME_SUB_COMMAND.lower():
            key, value = NAME_PROPERTY, item.display_name or NULL_VALUE_DISPLAY
        elif sub == LORE_SUB_COMMAND.lower():
            key = LORE_PROPERTY
            value = f"[{', '.join(item.lore)}]" if item.lore else NULL_VALUE_DISPLAY
        elif sub == ACTIVE_SUB_COMMAND.lower():
            key, value = ACTIVE_PROPERTY, _bool_text(store.is_cleaning_item_active())
        elif sub == DURABILITY_LOSS_SUB_COMMAND.lower():
            key, value = DURABILITY_PROPERTY, _bool_text(store.is_durability_loss_active())
        else:
            key, value = OPEN_EVENT_PROPERTY, _bool_text(store.is_open_event())

        send_current_value(command.sender, key, value)

    def _check_player(self, sender: Sender) -> bool:
        if isinstance(sender, Player):
            return True
        send_message(sender, MessageType.ERROR, MessageID.ERROR_YOU_NOT_PLAYER)
        return False

    def get_cleaning_item(self, command: CommandTuple) -> None:
        """Give the issuing player the cleaning item."""
        if not self._check_player(command.sender):
            return
        player: Player = command.sender
        if not player.has_permission(Permission.CMD_CLEANING_ITEM_GET.value):
            send_permission_error(player, Permission.CMD_CLEANING_ITEM_GET)
            return
        player.give(self.ctx.store.get_cleaning_item())
        send_message(player, MessageType.SUCCESS, MessageID.INFO_CLEANITEM_YOU_GET)

    def set_cleaning_item(self, command: CommandTuple) -> None:
        """Replace the cleaning item with the one the player holds."""
        if not self._check_player(command.sender):
            return
        player: Player = command.sender
        if not player.has_permission(Permission.CMD_ADMIN_ITEM_SET.value):
            send_permission_error(player, Permission.CMD_ADMIN_ITEM_SET)
            return

        item = player.main_hand.copy()
        if item.is_empty():
            send_message(player, MessageType.ERROR, MessageID.ERROR_YOU_HOLD_ITEM)
            return
        item.damage = 0
        item.amount = 1
        self.ctx.store.set_cleaning_item(item)
        send_changed_value(player, COMMAND_ALIAS, item.describe())

    def give_cleaning_item(self, command: CommandTuple) -> None:
        """Give the cleaning item to the online player named by the <player> capture."""
        sender = command.sender
        if not sender.has_permission(Permission.CMD_CLEANING_ITEM_GIVE.value):
            send_permission_error(sender, Permission.CMD_CLEANING_ITEM_GIVE)
            return
        player_name = command.value
        target = self.ctx.find_player(player_name)
        if target is None:
            send_message(sender, MessageType.ERROR, MessageID.ERROR_PLAYER_NOT_ONLINE, player_name)
            return
        target.give(self.ctx.store.get_cleaning_item())
        send_message(sender, MessageType.SUCCESS, MessageID.INFO_CLEANITEM_PLAYER_GET, target.name)

    def give_cleaning_item_to_all(self, command: CommandTuple) -> None:
        sender = command.sender
        if not sender.has_permission(Permission.CMD_CLEANING_ITEM_GIVE.value):
            send_permission_error(sender, Permission.CMD_CLEANING_ITEM_GIVE)
            return
        item = self.ctx.store.get_cleaning_item()
        for target in self.ctx.world.online_players():
            target.give(item)
            send_message(sender, MessageType.SUCCESS, MessageID.INFO_CLEANITEM_PLAYER_GET, target.name)

    def set_cleaning_item_active(self, command: CommandTuple) -> None:
        """Activate or deactivate the cleaning item."""
        sender = command.sender
        if not sender.has_permission(Permission.CMD_ADMIN_ITEM_SET_ACTIVE.value):
            send_permission_error(sender, Permission.CMD_ADMIN_ITEM_SET_ACTIVE)
            return
        value = bool(command.value)
        self.ctx.store.set_cleaning_item_active(value)
        send_changed_value(sender, ACTIVE_PROPERTY, _bool_text(value))

    def set_durability_loss(self, command: CommandTuple) -> None:
        """Turn durability loss of the cleaning item on or off."""
        sender = command.sender
        if not sender.has_permission(Permission.CMD_ADMIN_ITEM_SET_DURABILITYLOSS.value):
            send_permission_error(sender, Permission.CMD_ADMIN_ITEM_SET_DURABILITYLOSS)
            return
        value = bool(command.value)
        self.ctx.store.set_durability_loss_active(value)
        send_changed_value(sender, DURABILITY_PROPERTY, _bool_text(value))

    def set_open_event_mode(self, command: CommandTuple) -> None:
        sender = command.sender
        if not sender.has_permission(Permission.CMD_ADMIN_ITEM_SET_EVENT_MODE.value):
            send_permission_error(sender, Permission.CMD_ADMIN_ITEM_SET_EVENT_MODE)
            return
        value = bool(command.value)
        self.ctx.store.set_open_event(value)
        send_changed_value(sender, OPEN_EVENT_PROPERTY, _bool_text(value))

    def set_item_lore(self, command: CommandTuple) -> None:
        """Set the lore; "/n" starts a new line and "&" becomes a color code."""
        sender = command.sender
        if not sender.has_permission(Permission.CMD_ADMIN_ITEM_SET_LORE.value):
            send_permission_error(sender, Permission.CMD_ADMIN_ITEM_SET_LORE)
            return
        lore = [colorize(line) for line in str(command.value).split(LORE_LINE_SEPARATOR)]
        self.ctx.store.update_item(lambda item: setattr(item, "lore", lore))
        send_changed_value(sender, LORE_PROPERTY, f"[{', '.join(lore)}]")

    def set_item_name(self, command: CommandTuple) -> None:
        sender = command.sender
        if not sender.has_permission(Permission.CMD_ADMIN_ITEM_RENAME.value):
            send_permission_error(sender, Permission.CMD_ADMIN_ITEM_RENAME)
            return
        new_name = colorize(str(command.value))
        self.ctx.store.update_item(lambda item: setattr(item, "display_name", new_name))
        send_changed_value(sender, NAME_PROPERTY, new_name)

    # --- tab completion ---

    def _typed_candidates(self, edge: TypedEdge) -> Iterable[str]:
        if edge.arg_type is ArgumentType.BOOLEAN:
            return boolean_vocabulary()
        if edge.name == PLAYER_CAPTURE:
            return [p.name for p in self.ctx.world.online_players()]
        return []

    def on_tab_complete(self, sender: Sender, alias: str, args: Sequence[str]) -> List[str]:
        """Sorted candidates for the last (possibly empty) token of ``args``."""
        return self.tree.complete(args, self._typed_candidates)
