"""Ingestion engine settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_int

DEFAULT_PAGE_SIZE: Final[int] = 100
DEFAULT_PAGE_CAP: Final[int] = 10
# slightly under the 6MB proxy response ceiling
DEFAULT_MAX_RESPONSE_BYTES: Final[int] = int(5.5 * 1024 * 1024)


@dataclass(frozen=True, slots=True)
class IngestionConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    page_cap: int = DEFAULT_PAGE_CAP
    max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES


def get_ingestion_config() -> IngestionConfig:
    return IngestionConfig(
        page_size=env_int("CLIENTINGEST_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        page_cap=env_int("CLIENTINGEST_PAGE_CAP", DEFAULT_PAGE_CAP),
        max_response_bytes=env_int(
            "CLIENTINGEST_MAX_RESPONSE_BYTES", DEFAULT_MAX_RESPONSE_BYTES
        ),
    )
