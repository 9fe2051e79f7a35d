from __future__ import annotations

"""
Flask-SocketIO server for the ChestCleaner command router.

What this file does:
- Starts a Socket.IO server so clients can connect and type commands.
- Tracks connected players (see world.py) and the persisted cleaning item
  configuration (see config_store.py).
- Routes every "/alias arg arg ..." line to the registered command object for
  that alias (today: /cleaningitem, see cleaning_item_router.py), which walks
  its CommandTree and runs exactly one handler.
- Answers 'complete' events with tab-completion candidates.

Configuration comes from environment variables (optionally a .env file); see
constants.py for the names and defaults.

Maintenance: reset the saved configuration without starting the server:

    python server/server.py --reset

The flag rewrites the state file with factory defaults and exits. To run one
command as the console (all permissions, output printed) and exit:

    python server/server.py --exec /cleaningitem active false
"""

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from flask import Flask, request
from flask_socketio import SocketIO

# .env is loaded before any configuration is read
load_dotenv()

from cleaning_item_router import COMMAND_ALIAS, CleaningItemCommand
from command_context import CommandContext, Sender
from command_tree import DispatchResult
from config_store import ConfigStore
from constants import (
    COMMAND_PREFIX,
    COMPLETE_IN,
    DEFAULT_HOST,
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_MESSAGE_LENGTH,
    DEFAULT_PORT,
    DEFAULT_STATE_FILE,
    ENV_ADMIN_NAMES,
    ENV_CORS_ALLOWED_ORIGINS,
    ENV_DEFAULT_PERMISSIONS,
    ENV_HOST,
    ENV_LOG_FORMAT,
    ENV_LOG_LEVEL,
    ENV_MAX_MESSAGE_LEN,
    ENV_PORT,
    ENV_SECRET_KEY,
    ENV_STATE_PATH,
    MESSAGE_IN,
    MESSAGE_OUT,
)
from message_service import MessageID, MessageType, format_message, format_error_message, send_message
from permissions import PERMISSION_WILDCARD, parse_permission_list
from safe_utils import safe_call, safe_call_with_default
from world import ConsoleSender, Player, World

logger = logging.getLogger(__name__)


def _env_str(name: str, default: str) -> str:
    """Get environment variable as string with fallback to default."""
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_int(name: str, default: int) -> int:
    return safe_call_with_default(int, default, _env_str(name, str(default)).strip())


# Structured logging (env-driven):
# - MUD_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR|CRITICAL (default INFO)
# - MUD_LOG_FORMAT: 'json' or 'text' (default text)
def _setup_logging() -> None:
    def _configure_logging():
        level_name = _env_str(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).strip().upper()
        level = getattr(logging, level_name, logging.INFO)
        fmt_mode = _env_str(ENV_LOG_FORMAT, 'text').strip().lower()
        if fmt_mode == 'json':
            class _JsonFormatter(logging.Formatter):
                def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
                    payload = {
                        'ts': self.formatTime(record, datefmt='%Y-%m-%dT%H:%M:%S'),
                        'level': record.levelname,
                        'name': record.name,
                        'message': record.getMessage(),
                    }
                    return json.dumps(payload, ensure_ascii=False)
            handler = logging.StreamHandler()
            handler.setFormatter(_JsonFormatter())
            root = logging.getLogger()
            root.handlers = [handler]
            root.setLevel(level)
        else:
            logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT)

    safe_call(_configure_logging)


def _parse_cors_origins(s: str | None) -> str | list[str]:
    """Return '*' (allow all) or a list of allowed origins from CSV env."""
    if s is None:
        return '*'
    val = s.strip()
    if not val or val == '*':
        return '*'
    parts = [p.strip() for p in val.split(',') if p.strip()]
    return parts or '*'


_setup_logging()

# --- Game state ---
# An empty CLEANER_STATE_PATH keeps the configuration in memory only.
STATE_PATH = _env_str(ENV_STATE_PATH, os.path.join(os.path.dirname(__file__), DEFAULT_STATE_FILE))
MAX_MESSAGE_LEN = _env_int(ENV_MAX_MESSAGE_LEN, DEFAULT_MAX_MESSAGE_LENGTH)

world = World()
store = ConfigStore(STATE_PATH or None)
ctx = CommandContext(world=world, store=store)
console = ConsoleSender()

# alias (lower-case) -> command object with on_command / on_tab_complete
commands: Dict[str, Any] = {}


def register_command(command: Any) -> None:
    for alias in command.aliases:
        commands[alias.lower()] = command


register_command(CleaningItemCommand(ctx))


# --- Server Setup ---
app = Flask(__name__)
_secret = os.getenv(ENV_SECRET_KEY) or 'dev-only-change-me'
if not os.getenv(ENV_SECRET_KEY):
    logger.warning("Using default dev SECRET_KEY. Set SECRET_KEY env var in production.")
app.config['SECRET_KEY'] = _secret

socketio = SocketIO(
    app,
    cors_allowed_origins=_parse_cors_origins(os.getenv(ENV_CORS_ALLOWED_ORIGINS)),
    async_mode='threading',
)


def get_sid() -> str | None:
    """Return the Socket.IO session id (sid) for the current request."""
    return getattr(request, "sid", None)


def permissions_for(name: str) -> set[str]:
    """Permissions granted on connect: the defaults, or everything for admins."""
    granted = parse_permission_list(os.getenv(ENV_DEFAULT_PERMISSIONS))
    admin_names = {n.lower() for n in parse_permission_list(os.getenv(ENV_ADMIN_NAMES))}
    if name.lower() in admin_names:
        granted.add(PERMISSION_WILDCARD)
    return granted


def _split_command(line: str) -> Optional[List[str]]:
    """'/alias a b' -> ['alias', 'a', 'b']; None when the line is not a command."""
    text = (line or '').strip()
    if not text.startswith(COMMAND_PREFIX):
        return None
    parts = text[len(COMMAND_PREFIX):].split()
    return parts or None


def dispatch_line(sender: Sender, line: str) -> Optional[DispatchResult]:
    """Run one command line for ``sender``.

    Returns the tree's DispatchResult, or None when the line never reached a
    command (not a slash command, unknown alias, or the handler crashed).
    """
    parts = _split_command(line)
    if parts is None:
        send_message(sender, MessageType.ERROR, MessageID.ERROR_NOT_A_COMMAND, COMMAND_ALIAS)
        return None
    alias, args = parts[0], parts[1:]
    command = commands.get(alias.lower())
    if command is None:
        send_message(sender, MessageType.ERROR, MessageID.ERROR_UNKNOWN_COMMAND, alias)
        return None
    try:
        return command.on_command(sender, alias, args)
    except Exception:
        logger.exception(f"Command /{alias} {args} from {sender.name} failed")
        send_message(sender, MessageType.ERROR, MessageID.ERROR_COMMAND_FAILED, alias)
        return None


def complete_line(sender: Sender, line: str) -> List[str]:
    """Tab-completion candidates for a partially typed command line."""
    text = (line or '').lstrip()
    if not text.startswith(COMMAND_PREFIX):
        return []
    body = text[len(COMMAND_PREFIX):]
    parts = body.split()
    # A trailing space means the user is starting a new (empty) token
    if not parts or body.endswith(' '):
        parts.append('')
    if len(parts) == 1:
        partial = parts[0].lower()
        return sorted(a for a in commands if a.startswith(partial))
    command = commands.get(parts[0].lower())
    if command is None:
        return []
    return command.on_tab_complete(sender, parts[0], parts[1:])


# --- WebSocket Event Handlers ---

@socketio.on('connect')
def handle_connect(auth=None):
    """Register the connecting client as a Player.

    The client may pass {'name': str} as its auth payload; otherwise a name is
    derived from the sid. A name already in use refuses the connection.
    """
    sid = get_sid()
    name = ''
    if isinstance(auth, dict):
        name = str(auth.get('name') or '').strip()
    if not name:
        name = f"Player-{(sid or 'anon')[:6]}"
    if world.get_player_by_name(name) is not None:
        logger.info(f"Refusing connection for duplicate name {name!r}")
        return False

    def _emit(payload: dict, _sid=sid) -> None:
        socketio.emit(MESSAGE_OUT, payload, to=_sid)

    player = world.add_player(Player(sid=sid, name=name, permissions=permissions_for(name), emit=_emit))
    logger.info(f"{player.name} connected [sid={sid}]")
    send_message(player, MessageType.SUCCESS, MessageID.INFO_WELCOME, player.name, COMMAND_ALIAS)


@socketio.on('disconnect')
def handle_disconnect(*_args):
    sid = get_sid()
    player = world.remove_player(sid) if sid else None
    if player is not None:
        logger.info(f"{player.name} disconnected [sid={sid}]")


@socketio.on(MESSAGE_IN)
def handle_message(data):
    """Triggered when the client emits 'message_to_server' with {'content': str}."""
    sid = get_sid()
    player = world.players.get(sid) if sid else None
    if player is None:
        socketio.emit(MESSAGE_OUT, format_error_message(format_message(MessageID.ERROR_NOT_CONNECTED)), to=sid)
        return
    if not isinstance(data, dict) or not isinstance(data.get('content'), str):
        send_message(player, MessageType.ERROR, MessageID.ERROR_INVALID_PAYLOAD)
        return
    content = data['content']
    if len(content) > MAX_MESSAGE_LEN:
        send_message(player, MessageType.ERROR, MessageID.ERROR_MESSAGE_TOO_LONG, MAX_MESSAGE_LEN)
        return
    logger.debug(f"From {player.name} [sid={sid}]: {content}")
    dispatch_line(player, content)


@socketio.on(COMPLETE_IN)
def handle_complete(data):
    """Ack with {'completions': [...]} for the partially typed line in data['content']."""
    sid = get_sid()
    player = world.players.get(sid) if sid else None
    if player is None or not isinstance(data, dict):
        return {'completions': []}
    return {'completions': complete_line(player, str(data.get('content') or ''))}


# --- Run the Server ---
if __name__ == '__main__':
    argv = sys.argv[1:]
    if any(a.lower() in ('-reset', '--reset') for a in argv):
        if not STATE_PATH:
            print("No state file configured (CLEANER_STATE_PATH is empty); nothing to reset.")
            sys.exit(0)
        store.reset()
        print(f"Cleaning item configuration reset to factory defaults in {STATE_PATH}.")
        sys.exit(0)
    # Run a single command as the console, e.g. --exec /cleaningitem active false
    lowered = [a.lower() for a in argv]
    if '--exec' in lowered:
        line = " ".join(argv[lowered.index('--exec') + 1:])
        result = dispatch_line(console, line)
        for payload in console.messages:
            print(payload.get('content', ''))
        sys.exit(0 if result is not None and result.ok else 1)

    port = _env_int(ENV_PORT, DEFAULT_PORT)
    host = _env_str(ENV_HOST, DEFAULT_HOST)

    print("\n=== ChestCleaner Server Starting ===")
    print(f"Listening on: {host}:{port}")
    print(f"State file: {STATE_PATH or '(in memory)'}")
    print(f"Commands: {', '.join('/' + a for a in sorted(commands))}")
    print("====================================\n")

    socketio.run(app, host=host, port=port, debug=False)
