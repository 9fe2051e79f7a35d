from __future__ import annotations

"""Argument validation for typed command captures.

A typed capture in the command tree accepts any token and hands it to
``validate`` together with its declared ``ArgumentType``. Validation never
raises for bad input: it returns a ``ValidationResult`` so the dispatcher can
report a precise, recoverable error to the sender.

Supported types:
- TEXT: any token (or the joined remainder for greedy captures).
- BOOLEAN: the case-insensitive vocabulary in ``constants.BOOLEAN_VALUES``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from constants import BOOLEAN_VALUES


class ArgumentType(Enum):
    """Target types a typed capture can validate against."""
    TEXT = "text"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @staticmethod
    def success(value: Any) -> "ValidationResult":
        return ValidationResult(True, value, None)

    @staticmethod
    def failure(error: str) -> "ValidationResult":
        return ValidationResult(False, None, error)


def boolean_vocabulary() -> list[str]:
    """Recognized boolean words, in display order (true first)."""
    return list(BOOLEAN_VALUES.keys())


def validate(token: str, arg_type: ArgumentType) -> ValidationResult:
    """Convert ``token`` to a value of ``arg_type``."""
    if arg_type is ArgumentType.TEXT:
        return ValidationResult.success(token)
    if arg_type is ArgumentType.BOOLEAN:
        key = str(token).strip().lower()
        if key in BOOLEAN_VALUES:
            return ValidationResult.success(BOOLEAN_VALUES[key])
        return ValidationResult.failure("/".join(boolean_vocabulary()))
    # Unknown enum members only appear if ArgumentType grows without a branch here
    return ValidationResult.failure(f"unsupported argument type {arg_type!r}")
