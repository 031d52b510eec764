"""Map one raw record onto a :class:`ClientDraft` via ordered alias tables."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from logging import getLogger
from typing import Final

from clientingest.domain.model import (
    PLACEHOLDER_CLIENT_NAME,
    AuthConfig,
    AuthType,
    ClientDraft,
    RequestSpec,
)

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FieldAlias:
    """A canonical field and the record keys that may carry it, in priority order."""

    canonical: str
    aliases: tuple[str, ...]


NAME_ALIASES: Final[tuple[str, ...]] = (
    "name",
    "client_name",
    "clientName",
    "cnr",
    "cnr_name",
    "cnrName",
    "customer",
    "customer_name",
    "customerName",
    "title",
    "label",
    "company_name",
    "Company Name",
    "companyName",
    "company_id",
    "Company ID",
    "companyId",
)

SECONDARY_ALIASES: Final[tuple[FieldAlias, ...]] = (
    FieldAlias("company_id", ("company_id", "Company ID", "companyId")),
    FieldAlias("company_name", ("company_name", "Company Name", "companyName")),
    FieldAlias("old_company_id", ("old_company_id", "Old Company ID", "oldCompanyId")),
    FieldAlias("display_id", ("display_id", "Display ID", "displayId")),
    FieldAlias("types", ("types", "Types", "type")),
)


def _as_text(value: object) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, int):
        return str(value)
    return None


def first_alias_value(record: Mapping[str, object], aliases: tuple[str, ...]) -> str | None:
    """Return the first usable text value among ``aliases`` in ``record``."""

    for alias in aliases:
        value = _as_text(record.get(alias))
        if value is not None:
            return value
    return None


def extract_name(record: object) -> str:
    if isinstance(record, Mapping):
        name = first_alias_value(record, NAME_ALIASES)  # type: ignore[arg-type]
        if name is not None:
            return name
    elif isinstance(record, str) and record.strip():
        return record
    return PLACEHOLDER_CLIENT_NAME


def extract(
    record: object,
    base_url: str | None = None,
    *,
    request_config: RequestSpec | None = None,
    index: int | None = None,
) -> ClientDraft:
    """Build a draft from ``record``.

    ``api_url`` and ``request_config`` come from the caller only; a record
    cannot redirect where a client's data is fetched from.
    """

    secondary: dict[str, str | None] = {}
    if isinstance(record, Mapping):
        for group in SECONDARY_ALIASES:
            value = first_alias_value(record, group.aliases)  # type: ignore[arg-type]
            secondary[group.canonical] = value

    return ClientDraft(
        name=extract_name(record),
        api_url=base_url,
        request_config=request_config,
        source_index=index,
        **secondary,
    )


AUTH_TYPE_ALIASES: Final[tuple[str, ...]] = ("auth_type", "authType")
AUTH_TOKEN_ALIASES: Final[tuple[str, ...]] = ("auth_token", "authToken")
AUTH_USERNAME_ALIASES: Final[tuple[str, ...]] = ("auth_username", "authUsername")


def row_auth(record: Mapping[str, object]) -> AuthConfig | None:
    """Credentials carried by a CSV row's ``auth_type``/``auth_token`` columns.

    ``None`` means the row does not set credentials (no or unknown auth type);
    an explicit ``none`` yields an ``AuthType.NONE`` config that clears them.
    """

    raw_type = first_alias_value(record, AUTH_TYPE_ALIASES)
    if raw_type is None:
        return None
    try:
        auth_type = AuthType(raw_type.strip().lower())
    except ValueError:
        log.warning("Ignoring unknown auth_type %r", raw_type)
        return None

    token = first_alias_value(record, AUTH_TOKEN_ALIASES)
    if auth_type is AuthType.BASIC:
        username = first_alias_value(record, AUTH_USERNAME_ALIASES)
        return AuthConfig(type=auth_type, username=username, password=token)
    if auth_type is AuthType.APIKEY:
        return AuthConfig(type=auth_type, api_key=token)
    if auth_type is AuthType.NONE:
        return AuthConfig(type=auth_type)
    return AuthConfig(type=auth_type, token=token)


def row_request_config(
    record: Mapping[str, object],
    request_config: RequestSpec | None,
    api_url: str | None,
) -> RequestSpec | None:
    """Overlay a row's own credentials onto the caller's request config.

    Without a caller config the row's credentials are attached to a GET of
    ``api_url``; with neither, they are dropped.
    """

    auth = row_auth(record)
    if auth is None:
        return request_config
    effective = None if auth.type is AuthType.NONE else auth
    if request_config is not None:
        return replace(request_config, auth=effective)
    if effective is None:
        return None
    if api_url is None:
        log.warning("Row credentials ignored: no API URL to attach them to")
        return None
    return RequestSpec(url=api_url, auth=effective)
