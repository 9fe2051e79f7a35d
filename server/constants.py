"""
ChestCleaner Server Constants

Central location for configuration keys, message types, event names, command
vocabulary and other shared values. Keeping them in one place avoids magic
strings scattered across the routers, the command tree and the host.
"""

# =============================================================================
# Socket.IO Event Names
# =============================================================================

# Event clients send when they type a line into the chat box
MESSAGE_IN = 'message_to_server'

# Event the server uses to send messages back to clients
MESSAGE_OUT = 'message'

# Event clients send to ask for tab-completion candidates (answered via ack)
COMPLETE_IN = 'complete'

# =============================================================================
# Message Types
# =============================================================================

# Wire-level 'type' field; the client picks colors from it
MSG_TYPE_SYSTEM = 'system'
MSG_TYPE_ERROR = 'error'

# =============================================================================
# Command Syntax
# =============================================================================

# Prefix for slash commands like /cleaningitem
COMMAND_PREFIX = '/'

# Boolean vocabulary accepted by BOOLEAN typed captures (case-insensitive).
# Order matters: it is the order shown in errors and tab completion.
BOOLEAN_VALUES = {
    'true': True,
    'false': False,
}

# Selector meaning "every online player" in /cleaningitem give
ALL_PLAYERS_SELECTOR = '@a'

# Color-code escape used in item names and lore, and the line separator for lore
COLOR_CODE_INPUT = '&'
COLOR_CODE_OUTPUT = '§'
LORE_LINE_SEPARATOR = '/n'

# Shown in "current value" messages when a property is unset
NULL_VALUE_DISPLAY = '<null>'

# =============================================================================
# Environment Variable Keys
# =============================================================================

ENV_HOST = 'HOST'
ENV_PORT = 'PORT'
ENV_SECRET_KEY = 'SECRET_KEY'
ENV_MAX_MESSAGE_LEN = 'MUD_MAX_MESSAGE_LEN'
ENV_LOG_LEVEL = 'MUD_LOG_LEVEL'
ENV_LOG_FORMAT = 'MUD_LOG_FORMAT'
ENV_CORS_ALLOWED_ORIGINS = 'MUD_CORS_ALLOWED_ORIGINS'

# Path of the JSON file holding the cleaning item configuration
ENV_STATE_PATH = 'CLEANER_STATE_PATH'

# CSV of player names that receive every permission on connect
ENV_ADMIN_NAMES = 'CLEANER_ADMIN_NAMES'

# CSV of permission strings granted to every connecting player
ENV_DEFAULT_PERMISSIONS = 'CLEANER_DEFAULT_PERMISSIONS'

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 5000
DEFAULT_MAX_MESSAGE_LENGTH = 1000
DEFAULT_STATE_FILE = 'cleaner_state.json'
DEFAULT_LOG_LEVEL = 'INFO'
DEFAULT_LOG_FORMAT = '[%(levelname)s] %(message)s'

# Material of an empty hand; "set" refuses to store it
EMPTY_HAND_MATERIAL = 'air'

# Factory cleaning item
DEFAULT_ITEM_MATERIAL = 'iron_hoe'
DEFAULT_ITEM_NAME = None
DEFAULT_ITEM_LORE: list[str] = []

# Factory toggles
DEFAULT_ITEM_ACTIVE = True
DEFAULT_DURABILITY_LOSS = True
DEFAULT_OPEN_EVENT = False
