"""Client name rules: normalization, type detection and validation.

All functions are pure string transforms shared by every ingestion path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .enums import ClientType

if TYPE_CHECKING:
    from collections.abc import Collection

NAME_MIN_LENGTH: Final[int] = 2
NAME_MAX_LENGTH: Final[int] = 100

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    is_valid: bool
    message: str = ""

    @classmethod
    def ok(cls) -> ValidationOutcome:
        return cls(is_valid=True)

    @classmethod
    def fail(cls, message: str) -> ValidationOutcome:
        return cls(is_valid=False, message=message)


def normalize_client_name(name: str | None) -> str:
    """Trim ``name`` and collapse internal whitespace runs to a single space."""

    if not name:
        return ""
    return _WHITESPACE_RUN.sub(" ", name.strip())


def detect_client_type(name: str | None) -> ClientType:
    if not name:
        return ClientType.STANDARD
    upper = name.upper()
    if "CNR+CEE" in upper:
        return ClientType.CNR_CEE
    if "CNR" in upper:
        return ClientType.CNR
    return ClientType.STANDARD


def validate_client_name(name: str | None) -> ValidationOutcome:
    """Check an already-normalized name; the first failing rule wins."""

    if not name or not name.strip():
        return ValidationOutcome.fail("Client name is required")
    if len(name) < NAME_MIN_LENGTH:
        return ValidationOutcome.fail(
            f"Client name must be at least {NAME_MIN_LENGTH} characters long"
        )
    if len(name) > NAME_MAX_LENGTH:
        return ValidationOutcome.fail(
            f"Client name must be at most {NAME_MAX_LENGTH} characters long"
        )
    return ValidationOutcome.ok()


def generate_unique_client_name(name: str, existing_names: Collection[str]) -> str:
    """Return ``name`` or the first ``"name (n)"`` variant not in ``existing_names``."""

    if not existing_names:
        return name
    candidate = name
    counter = 1
    while candidate in existing_names:
        suffix = f" ({counter})"
        candidate = f"{name[: NAME_MAX_LENGTH - len(suffix)].rstrip()}{suffix}"
        counter += 1
    return candidate
