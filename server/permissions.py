from enum import Enum


# Granting this token grants every permission
PERMISSION_WILDCARD = '*'


class Permission(Enum):
    """Permission tokens checked by the cleaning-item handlers.

    The command tree itself never looks at these; each handler asks the sender
    via ``sender.has_permission(Permission.X.value)`` before doing anything.
    """
    CMD_CLEANING_ITEM_GET = 'chestcleaner.cmd.cleaningitem.get'
    CMD_CLEANING_ITEM_GIVE = 'chestcleaner.cmd.cleaningitem.give'
    CMD_ADMIN_ITEM_SET = 'chestcleaner.cmd.admin.cleaningitem.set'
    CMD_ADMIN_ITEM_RENAME = 'chestcleaner.cmd.admin.cleaningitem.rename'
    CMD_ADMIN_ITEM_SET_LORE = 'chestcleaner.cmd.admin.cleaningitem.lore'
    CMD_ADMIN_ITEM_SET_ACTIVE = 'chestcleaner.cmd.admin.cleaningitem.active'
    CMD_ADMIN_ITEM_SET_DURABILITYLOSS = 'chestcleaner.cmd.admin.cleaningitem.durabilityloss'
    CMD_ADMIN_ITEM_SET_EVENT_MODE = 'chestcleaner.cmd.admin.cleaningitem.openevent'


def parse_permission_list(raw: str | None) -> set[str]:
    """Split a CSV of permission tokens (env var format) into a set."""
    if not raw:
        return set()
    return {p.strip() for p in raw.split(',') if p.strip()}
