from __future__ import annotations
"""Pytest shared fixtures.

Environment is pinned at import time, before any test imports `server`, so
the host never touches a real state file and permissions are predictable:

- CLEANER_STATE_PATH is empty: the config store stays in memory.
- CLEANER_ADMIN_NAMES grants every permission to "Admin".
- CLEANER_DEFAULT_PERMISSIONS grants only the "get" permission to everyone.

`server_module` hands each test a freshly imported `server` so the module-level
world, store and command map never leak between tests.
"""
import importlib
import os
import sys

import pytest

os.environ['TEST_MODE'] = '1'
os.environ['CLEANER_STATE_PATH'] = ''
os.environ['CLEANER_ADMIN_NAMES'] = 'Admin'
os.environ['CLEANER_DEFAULT_PERMISSIONS'] = 'chestcleaner.cmd.cleaningitem.get'
os.environ['DEBUG_RAISE_EXCEPTIONS'] = '0'

MODULES_TO_REFRESH = ("server",)


@pytest.fixture(autouse=True)
def _reset_safe_utils():
    from safe_utils import reset_seen_exceptions
    reset_seen_exceptions()
    yield
    reset_seen_exceptions()


@pytest.fixture
def server_module():
    for name in MODULES_TO_REFRESH:
        sys.modules.pop(name, None)
    importlib.invalidate_caches()
    import server  # type: ignore
    yield server
    sys.modules.pop("server", None)


@pytest.fixture
def recording_sender():
    """A non-player sender that records every payload it receives."""
    class RecordingSender:
        name = "Recorder"

        def __init__(self, permissions=None):
            self.permissions = set(permissions or [])
            self.payloads: list[dict] = []

        def has_permission(self, token: str) -> bool:
            return '*' in self.permissions or token in self.permissions

        def send(self, payload: dict) -> None:
            self.payloads.append(payload)

        @property
        def contents(self) -> list[str]:
            return [p['content'] for p in self.payloads]

    return RecordingSender
