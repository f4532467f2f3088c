"""Client configuration.

Options are plain callables that write into a draft dict. new_config() applies
them in order (later options win) and validates the result once into a frozen
Config. Options can also be produced from the environment or a YAML file.
"""

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from openai_shim.errors import ConfigError
from openai_shim.models import DEFAULT_MODEL
from openai_shim.transport import new_headers, socks_proxy_url

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 300
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 30.0

PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")
SOCKS_SCHEMES = ("socks5", "socks5h")

Option = Callable[[dict[str, Any]], None]


class Provider(str, Enum):
    """Which flavor of the API the client talks to."""

    OPENAI = "openai"
    AZURE = "azure"


class Config(BaseModel):
    """Resolved connection and generation settings for a Client."""

    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())

    token: str = Field(default="", validate_default=True)
    org_id: str = ""
    base_url: str = ""
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)  # seconds
    proxy_url: str = ""
    socks_url: str = ""  # host:port or socks5://host:port
    skip_verify: bool = False
    model: str = DEFAULT_MODEL  # friendly name, resolved by the client
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0, le=2)
    provider: Provider = Provider.OPENAI
    api_version: str = ""
    headers: Mapping[str, str] = Field(default={}, validate_default=True)  # read-only after validation
    model_name: str = ""  # Azure deployment name

    @field_validator("headers")
    @classmethod
    def _freeze_headers(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_validator("token")
    @classmethod
    def _require_token(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("missing api token")
        return value

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _check_connection(self) -> "Config":
        if self.proxy_url and self.socks_url:
            raise ValueError("proxy_url and socks_url are mutually exclusive, set only one")
        if self.proxy_url:
            parsed = urlparse(self.proxy_url)
            if parsed.scheme not in PROXY_SCHEMES or not parsed.hostname:
                raise ValueError(f"invalid proxy url: {self.proxy_url!r}")
        if self.socks_url:
            parsed = urlparse(socks_proxy_url(self.socks_url))
            if parsed.scheme not in SOCKS_SCHEMES or not parsed.hostname:
                raise ValueError(f"invalid socks5 address: {self.socks_url!r}")
        if self.provider is Provider.AZURE:
            if not self.base_url:
                raise ValueError("azure provider requires base_url (the resource endpoint)")
            if not self.model_name:
                raise ValueError("azure provider requires model_name (the deployment name)")
        return self


def _set(field: str, value: Any) -> Option:
    def apply(draft: dict[str, Any]) -> None:
        draft[field] = value

    return apply


def with_token(token: str) -> Option:
    return _set("token", token)


def with_org_id(org_id: str) -> Option:
    return _set("org_id", org_id)


def with_base_url(base_url: str) -> Option:
    return _set("base_url", base_url)


def with_timeout(seconds: float) -> Option:
    return _set("timeout", seconds)


def with_proxy_url(url: str) -> Option:
    return _set("proxy_url", url)


def with_socks_url(address: str) -> Option:
    return _set("socks_url", address)


def with_skip_verify(skip: bool = True) -> Option:
    return _set("skip_verify", skip)


def with_model(model: str) -> Option:
    return _set("model", model)


def with_max_tokens(max_tokens: int) -> Option:
    return _set("max_tokens", max_tokens)


def with_temperature(temperature: float) -> Option:
    return _set("temperature", temperature)


def with_provider(provider: Provider | str) -> Option:
    return _set("provider", provider)


def with_api_version(api_version: str) -> Option:
    return _set("api_version", api_version)


def with_model_name(model_name: str) -> Option:
    return _set("model_name", model_name)


def with_headers(headers: Mapping[str, str] | Iterable[str]) -> Option:
    """Add static headers sent on every request.

    Accepts a mapping or "Key=Value" strings. Repeated use merges, later values win.
    """
    parsed = new_headers(headers)

    def apply(draft: dict[str, Any]) -> None:
        draft["headers"] = {**draft.get("headers", {}), **parsed}

    return apply


def new_config(*opts: Option) -> Config:
    """Apply every option to a draft, then validate it into a Config.

    Raises ConfigError describing every failed rule.
    """
    draft: dict[str, Any] = {}
    for opt in opts:
        opt(draft)
    try:
        return Config(**draft)
    except ValidationError as exc:
        raise ConfigError(_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        msg = err["msg"].removeprefix("Value error, ")
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


ENV_OPTIONS: dict[str, Callable[[str], Option]] = {
    "OPENAI_API_KEY": with_token,
    "OPENAI_ORG_ID": with_org_id,
    "OPENAI_BASE_URL": with_base_url,
    "OPENAI_TIMEOUT": with_timeout,
    "OPENAI_PROXY": with_proxy_url,
    "OPENAI_SOCKS": with_socks_url,
    "OPENAI_SKIP_VERIFY": with_skip_verify,
    "OPENAI_MODEL": with_model,
    "OPENAI_MAX_TOKENS": with_max_tokens,
    "OPENAI_TEMPERATURE": with_temperature,
    "OPENAI_PROVIDER": with_provider,
    "OPENAI_API_VERSION": with_api_version,
    "OPENAI_MODEL_NAME": with_model_name,
}


def options_from_env(environ: Mapping[str, str] | None = None) -> list[Option]:
    """Build options from OPENAI_* environment variables. Unset or empty ones are ignored.

    Values stay strings here; new_config() coerces and validates them.
    """
    if environ is None:
        environ = os.environ
    opts = []
    for name, option in ENV_OPTIONS.items():
        value = environ.get(name)
        if value:
            logger.debug("config: %s taken from environment", name)
            opts.append(option(value))
    return opts


def load_config_file(path: Path) -> list[Option]:
    """Read a YAML mapping of Config field names into options."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        return []
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    unknown = sorted(str(k) for k in data if k not in Config.model_fields)
    if unknown:
        raise ConfigError(f"{path}: unknown config keys: {', '.join(unknown)}")

    opts = []
    for key, value in data.items():
        if key == "headers":
            opts.append(with_headers(value or {}))
        else:
            opts.append(_set(key, value))
    logger.debug("config: loaded %d keys from %s", len(opts), path)
    return opts
