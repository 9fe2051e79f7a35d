"""Message formatting and delivery service.

This module is the single place that turns a message identifier plus optional
substitution values into a wire payload and hands it to a sender. The command
tree, the cleaning-item handlers and the host all go through it, so wording
stays consistent and tests can assert on ``MessageID`` values instead of text.

Delivery is best-effort: a failing sender transport (e.g. a socket that went
away mid-command) is logged once through ``safe_call`` and never raised back
into command dispatch.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from constants import MSG_TYPE_ERROR, MSG_TYPE_SYSTEM
from safe_utils import safe_call


class MessageType(Enum):
    """Severity of a message; the value is the wire-level 'type' field."""
    SUCCESS = MSG_TYPE_SYSTEM
    ERROR = MSG_TYPE_ERROR


class MessageID(Enum):
    INFO_CURRENT_VALUE = "info_current_value"
    INFO_VALUE_CHANGED = "info_value_changed"
    INFO_CLEANITEM_YOU_GET = "info_cleanitem_you_get"
    INFO_CLEANITEM_PLAYER_GET = "info_cleanitem_player_get"
    ERROR_YOU_NOT_PLAYER = "error_you_not_player"
    ERROR_YOU_HOLD_ITEM = "error_you_hold_item"
    ERROR_PLAYER_NOT_ONLINE = "error_player_not_online"
    ERROR_PERMISSION = "error_permission"
    ERROR_VALIDATION_BOOLEAN = "error_validation_boolean"
    ERROR_UNKNOWN_SUBCOMMAND = "error_unknown_subcommand"
    ERROR_COMMAND_USAGE = "error_command_usage"
    ERROR_UNKNOWN_COMMAND = "error_unknown_command"
    ERROR_MESSAGE_TOO_LONG = "error_message_too_long"
    ERROR_INVALID_PAYLOAD = "error_invalid_payload"
    ERROR_COMMAND_FAILED = "error_command_failed"
    ERROR_NOT_A_COMMAND = "error_not_a_command"
    ERROR_NOT_CONNECTED = "error_not_connected"
    INFO_WELCOME = "info_welcome"


# English catalogue; placeholders are positional ({0}, {1}, ...)
MESSAGES: Dict[MessageID, str] = {
    MessageID.INFO_CURRENT_VALUE: "The current value of '{0}' is {1}.",
    MessageID.INFO_VALUE_CHANGED: "'{0}' was set to {1}.",
    MessageID.INFO_CLEANITEM_YOU_GET: "You received the cleaning item.",
    MessageID.INFO_CLEANITEM_PLAYER_GET: "{0} received the cleaning item.",
    MessageID.ERROR_YOU_NOT_PLAYER: "Only players can use this command.",
    MessageID.ERROR_YOU_HOLD_ITEM: "You have to hold an item in your main hand.",
    MessageID.ERROR_PLAYER_NOT_ONLINE: "Player '{0}' is not online.",
    MessageID.ERROR_PERMISSION: "You don't have the permission '{0}'.",
    MessageID.ERROR_VALIDATION_BOOLEAN: "'{0}' is not a valid value. Expected one of: {1}.",
    MessageID.ERROR_UNKNOWN_SUBCOMMAND: "Unknown sub-command '{0}'. {1}",
    MessageID.ERROR_COMMAND_USAGE: "{0}",
    MessageID.ERROR_UNKNOWN_COMMAND: "Unknown command: /{0}",
    MessageID.ERROR_MESSAGE_TOO_LONG: "Message too long (>{0} chars).",
    MessageID.ERROR_INVALID_PAYLOAD: 'Invalid payload; expected {{ "content": string }}.',
    MessageID.ERROR_COMMAND_FAILED: "Something went wrong while running /{0}.",
    MessageID.ERROR_NOT_A_COMMAND: "Commands start with '/', e.g. /{0}.",
    MessageID.ERROR_NOT_CONNECTED: "Not connected.",
    MessageID.INFO_WELCOME: "Welcome, {0}. Type /{1} to manage the cleaning item.",
}


def format_message(message_id: MessageID, *replacements: Any) -> str:
    """Render the catalogue entry for ``message_id`` with ``replacements``."""
    template = MESSAGES[message_id]
    return template.format(*[str(r) for r in replacements])


def format_payload(message_type: MessageType, content: str) -> dict:
    return {'type': message_type.value, 'content': content}


def format_system_message(content: str) -> dict:
    """Format a system message payload."""
    return format_payload(MessageType.SUCCESS, content)


def format_error_message(content: str) -> dict:
    """Format an error message payload."""
    return format_payload(MessageType.ERROR, content)


def send_message(sender: Any, message_type: MessageType, message_id: MessageID, *replacements: Any) -> None:
    """Format ``message_id`` and deliver it to ``sender``.

    Args:
        sender: Anything with a ``send(payload)`` method (Player, ConsoleSender)
        message_type: SUCCESS or ERROR
        message_id: Catalogue key
        *replacements: Positional substitution values
    """
    payload = format_payload(message_type, format_message(message_id, *replacements))
    safe_call(sender.send, payload)


def send_permission_error(sender: Any, permission: Any) -> None:
    """Tell ``sender`` which permission it is missing.

    ``permission`` may be a ``Permission`` enum member or a raw string.
    """
    token = getattr(permission, 'value', permission)
    send_message(sender, MessageType.ERROR, MessageID.ERROR_PERMISSION, token)


def send_changed_value(sender: Any, key: str, value: Any) -> None:
    send_message(sender, MessageType.SUCCESS, MessageID.INFO_VALUE_CHANGED, key, value)


def send_current_value(sender: Any, key: str, value: Any) -> None:
    send_message(sender, MessageType.SUCCESS, MessageID.INFO_CURRENT_VALUE, key, value)


__all__ = [
    'MessageType',
    'MessageID',
    'MESSAGES',
    'format_message',
    'format_payload',
    'format_system_message',
    'format_error_message',
    'send_message',
    'send_permission_error',
    'send_changed_value',
    'send_current_value',
]
