"""Pydantic models for request-spec documents (camelCase JSON layout)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from clientingest.domain.errors import FormatError
from clientingest.domain.model import (
    ApiKeyLocation,
    AuthConfig,
    AuthType,
    KeyValue,
    RequestSpec,
)
from clientingest.domain.model.request import DEFAULT_API_KEY_NAME

if TYPE_CHECKING:
    from collections.abc import Sequence


class RequestSchemaModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class KeyValueModel(RequestSchemaModel):
    key: str
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (int, float)):
            return str(value)
        return value


def _pairs(value: object) -> object:
    """Accept ``{"k": "v"}`` mappings as well as ``[{"key": ..., "value": ...}]``."""

    if isinstance(value, Mapping):
        mapping = cast(Mapping[str, object], value)
        return [{"key": key, "value": item} for key, item in mapping.items()]
    if value is None:
        return []
    return value


class AuthModel(RequestSchemaModel):
    type: AuthType = AuthType.NONE
    username: str | None = None
    password: str | None = None
    token: str | None = None
    api_key: str | None = Field(default=None, alias="apiKey")
    api_key_name: str = Field(default=DEFAULT_API_KEY_NAME, alias="apiKeyName")
    api_key_location: ApiKeyLocation = Field(
        default=ApiKeyLocation.HEADER, alias="apiKeyLocation"
    )

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or AuthType.NONE
        return value

    def to_domain(self) -> AuthConfig:
        return AuthConfig(
            type=self.type,
            username=self.username,
            password=self.password,
            token=self.token,
            api_key=self.api_key,
            api_key_name=self.api_key_name or DEFAULT_API_KEY_NAME,
            api_key_location=self.api_key_location,
        )

    @classmethod
    def from_domain(cls, auth: AuthConfig) -> AuthModel:
        return cls(
            type=auth.type,
            username=auth.username,
            password=auth.password,
            token=auth.token,
            api_key=auth.api_key,
            api_key_name=auth.api_key_name,
            api_key_location=auth.api_key_location,
        )


class RequestSpecDocument(RequestSchemaModel):
    url: str
    method: str = "GET"
    headers: list[KeyValueModel] = Field(default_factory=list[KeyValueModel])
    query_params: list[KeyValueModel] = Field(
        default_factory=list[KeyValueModel], alias="queryParams"
    )
    body: object = None
    auth: AuthModel | None = None

    @field_validator("headers", "query_params", mode="before")
    @classmethod
    def _as_pairs(cls, value: object) -> object:
        return _pairs(value)

    def to_domain(self) -> RequestSpec:
        auth = self.auth.to_domain() if self.auth is not None else None
        if auth is not None and auth.type is AuthType.NONE:
            auth = None
        return RequestSpec(
            url=self.url,
            method=self.method,
            headers=_key_values(self.headers),
            query_params=_key_values(self.query_params),
            body=self.body if self.body not in ({}, "", []) else None,
            auth=auth,
        )

    @classmethod
    def from_domain(cls, spec: RequestSpec) -> RequestSpecDocument:
        return cls(
            url=spec.url,
            method=spec.method,
            headers=[KeyValueModel(key=item.key, value=item.value) for item in spec.headers],
            query_params=[
                KeyValueModel(key=item.key, value=item.value) for item in spec.query_params
            ],
            body=spec.body,
            auth=AuthModel.from_domain(spec.auth) if spec.auth is not None else None,
        )


def _key_values(items: Sequence[KeyValueModel]) -> tuple[KeyValue, ...]:
    return tuple(KeyValue(item.key, item.value) for item in items if item.key)


def load_request_spec(document: str | bytes | Mapping[str, object]) -> RequestSpec:
    """Validate a request-spec document and convert it to a :class:`RequestSpec`."""

    try:
        if isinstance(document, Mapping):
            model = RequestSpecDocument.model_validate(document)
        else:
            model = RequestSpecDocument.model_validate_json(document)
        return model.to_domain()
    except ValidationError as exc:
        raise FormatError(f"Invalid request specification: {exc.error_count()} error(s)") from exc
    except ValueError as exc:
        raise FormatError(f"Invalid request specification: {exc}") from exc


def dump_request_spec(spec: RequestSpec, *, redact: bool = False) -> dict[str, object]:
    """Serialize ``spec`` to the camelCase document layout."""

    source = spec.redacted() if redact else spec
    return RequestSpecDocument.from_domain(source).model_dump(by_alias=True, mode="json")
