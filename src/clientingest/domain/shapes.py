"""Locate the record collection inside a payload of unknown structure."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import StrEnum
from logging import getLogger
from typing import Final

log = getLogger(__name__)

CONTAINER_NAMES: Final[tuple[str, ...]] = ("clients", "data", "results", "content")


class PayloadKind(StrEnum):
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    SCALAR = "scalar"


def payload_kind(value: object) -> PayloadKind:
    if isinstance(value, (str, bytes, bytearray)):
        return PayloadKind.SCALAR
    if isinstance(value, Mapping):
        return PayloadKind.MAPPING
    if isinstance(value, Sequence):
        return PayloadKind.SEQUENCE
    return PayloadKind.SCALAR


def _is_non_empty_sequence(value: object) -> bool:
    return payload_kind(value) is PayloadKind.SEQUENCE and len(value) > 0  # type: ignore[arg-type]


type ShapeStrategy = Callable[[object], Sequence[object] | None]


def _whole_payload(value: object) -> Sequence[object] | None:
    if payload_kind(value) is PayloadKind.SEQUENCE:
        return value  # type: ignore[return-value]
    return None


def _conventional_container(value: object) -> Sequence[object] | None:
    if payload_kind(value) is not PayloadKind.MAPPING:
        return None
    mapping: Mapping[str, object] = value  # type: ignore[assignment]
    for name in CONTAINER_NAMES:
        candidate = mapping.get(name)
        if _is_non_empty_sequence(candidate):
            return candidate  # type: ignore[return-value]
    return None


def _first_sequence_field(value: object) -> Sequence[object] | None:
    if payload_kind(value) is not PayloadKind.MAPPING:
        return None
    mapping: Mapping[str, object] = value  # type: ignore[assignment]
    for candidate in mapping.values():
        if _is_non_empty_sequence(candidate):
            return candidate  # type: ignore[return-value]
    return None


# Conventional names are tried before the structural scan so that well-formed
# APIs never fall through to guesswork.
SHAPE_STRATEGIES: Final[tuple[tuple[str, ShapeStrategy], ...]] = (
    ("sequence", _whole_payload),
    ("container", _conventional_container),
    ("first-sequence-field", _first_sequence_field),
)


def locate_records(value: object) -> list[object]:
    """Return the best-guess record collection inside ``value``.

    An empty list means "no records found"; it is not an error.
    """

    for name, strategy in SHAPE_STRATEGIES:
        records = strategy(value)
        if records is not None:
            log.debug("Located %d records using the %s strategy", len(records), name)
            return list(records)
    log.debug("No record collection found in %s payload", payload_kind(value))
    return []
