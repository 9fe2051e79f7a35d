"""
Best-effort execution helpers.

Some operations must never take a command down with them: delivering a message
to a client whose socket already closed, writing the config file on a full
disk, parsing a malformed environment variable. Those call sites go through
``safe_call`` / ``safe_call_with_default``, which log the first occurrence of
each (function, exception type) pair and then stay quiet.

Environment Opt-In (Debug Raising):
    Set DEBUG_RAISE_EXCEPTIONS to '1', 'true', 'yes' or 'on' to re-raise after
    the first (still logged) occurrence. The variable is read on every call so
    tests can toggle it with monkeypatch.

Usage:
    safe_call(sender.send, payload)
    port = safe_call_with_default(int, 5000, os.getenv('PORT'))

Configuration errors in the command tree are programming errors and are never
routed through these helpers.
"""

import logging
import os
from typing import Any, Callable, Optional, Set, TypeVar

# (function name, exception type) pairs already logged this session
_seen_exceptions: Set[str] = set()

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _debug_raise_enabled() -> bool:
    val = (os.getenv('DEBUG_RAISE_EXCEPTIONS') or '').strip().lower()
    return val in ('1', 'true', 'yes', 'on')


def _fn_name(fn: Any) -> str:
    return fn.__name__ if hasattr(fn, '__name__') else str(fn)


def _log_once(label: str, fn: Any, e: Exception, suffix: str) -> None:
    exc_type = type(e).__name__
    exc_key = f"{_fn_name(fn)}:{exc_type}"
    if exc_key not in _seen_exceptions:
        _seen_exceptions.add(exc_key)
        logger.warning(f"{label}: {_fn_name(fn)} failed with {exc_type}: {e} ({suffix})")


def safe_call(fn: Callable[..., T], *args, **kwargs) -> Optional[T]:
    """Run ``fn`` and return its result, or None if it raised.

    The first failure of each exception type per function is logged at WARNING;
    repeats are silent.
    """
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        _log_once("safe_call", fn, e, f"subsequent {type(e).__name__} exceptions from this function will be silent")
        if _debug_raise_enabled():
            raise
        return None


def safe_call_with_default(fn: Callable[..., T], default: T, *args, **kwargs) -> T:
    """Like ``safe_call`` but returns ``default`` instead of None on failure."""
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        _log_once("safe_call_with_default", fn, e, f"returning default: {default}")
        if _debug_raise_enabled():
            raise
        return default


def reset_seen_exceptions() -> None:
    """Forget which exceptions were logged (test helper)."""
    _seen_exceptions.clear()
