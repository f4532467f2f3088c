"""LLM client wrapper around litellm.

Builds an openai SDK handle (standard or Azure) on top of the configured httpx
transport and hands it to litellm on every call. Chat-capable models go to the
chat endpoint, the rest to legacy text completions.
"""

import logging
from typing import Any

from litellm import completion, text_completion
from openai import AzureOpenAI, OpenAI
from pydantic import BaseModel

from openai_shim.config import Config, Option, Provider, new_config
from openai_shim.errors import EmptyResponseError
from openai_shim.models import FUNCTION_CALL_MODELS, is_chat_model, resolve
from openai_shim.transport import build_http_client

logger = logging.getLogger(__name__)

DEFAULT_AZURE_API_VERSION = "2023-05-15"
AZURE_FUNCTION_CALL_API_VERSION = "2023-07-01-preview"


class Usage(BaseModel):
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Response(BaseModel):
    """Uniform result of Client.completion()."""

    content: str
    usage: Usage = Usage()


class FunctionDefinition(BaseModel):
    """A function the model may ask to call instead of answering in text."""

    name: str
    description: str = ""
    parameters: dict = {}  # JSON Schema of the arguments


def allow_func_call(provider: Provider, api_version: str, model: str) -> bool:
    """Whether the provider/API version/model combination accepts function definitions.

    Azure enables function calling for every deployment on the 2023-07-01-preview
    API version; otherwise only the 0613 snapshots support it.
    """
    if provider is Provider.AZURE and api_version == AZURE_FUNCTION_CALL_API_VERSION:
        return True
    return model in FUNCTION_CALL_MODELS


class Client:
    """Pass-through client. Immutable after construction, safe to share between threads."""

    def __init__(self, config: Config):
        self._config = config
        self._model = resolve(config.model)
        self._max_tokens = config.max_tokens
        self._temperature = config.temperature
        self._sdk = _build_sdk(config)
        self._func_call = allow_func_call(config.provider, config.api_version, self._model)
        logger.debug(
            "client ready: provider=%s model=%s function_call=%s",
            config.provider.value, self._model, self._func_call,
        )

    def close(self) -> None:
        """Release the HTTP connections held by the SDK handle."""
        self._sdk.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def model(self) -> str:
        return self._model

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def provider(self) -> Provider:
        return self._config.provider

    @property
    def sdk(self) -> OpenAI | AzureOpenAI:
        return self._sdk

    @property
    def allow_func_call(self) -> bool:
        """Whether function definitions can be sent to the resolved model."""
        return self._func_call

    # -- raw endpoint calls ---------------------------------------------------

    def create_chat_completion(self, content: str) -> Any:
        """Send one user message to the chat endpoint and return the raw response."""
        return completion(
            messages=[{"role": "user", "content": content}],
            custom_llm_provider=self._chat_provider(),
            **self._request_kwargs(),
        )

    def create_completion(self, content: str) -> Any:
        """Send a prompt to the legacy text-completion endpoint and return the raw response."""
        return text_completion(
            prompt=content,
            custom_llm_provider=self._text_provider(),
            **self._request_kwargs(),
        )

    def create_function_call(self, content: str, *functions: FunctionDefinition | dict) -> Any:
        """Chat request that lets the model pick one of the given functions."""
        if not self._func_call:
            logger.warning("model %s is not known to support function calls", self._model)
        return completion(
            messages=[{"role": "user", "content": content}],
            functions=[_function_payload(f) for f in functions],
            function_call="auto",
            custom_llm_provider=self._chat_provider(),
            **self._request_kwargs(),
        )

    # -- uniform completion ---------------------------------------------------

    def completion(self, content: str) -> Response:
        """Complete a prompt on whichever endpoint serves the resolved model."""
        if is_chat_model(self._model):
            logger.debug("completion: %s via chat endpoint", self._model)
            resp = self.create_chat_completion(content)
            text = _first_choice(resp).message.content
        else:
            logger.debug("completion: %s via legacy completion endpoint", self._model)
            resp = self.create_completion(content)
            text = _first_choice(resp).text
        return Response(content=text or "", usage=_usage(resp))

    # -- helpers --------------------------------------------------------------

    def _request_model(self) -> str:
        # Azure routes every request to the configured deployment.
        if self._config.provider is Provider.AZURE:
            return self._config.model_name
        return self._model

    def _chat_provider(self) -> str:
        return "azure" if self._config.provider is Provider.AZURE else "openai"

    def _text_provider(self) -> str:
        return "azure_text" if self._config.provider is Provider.AZURE else "text-completion-openai"

    def _api_version(self) -> str:
        if self._config.provider is Provider.AZURE:
            return self._config.api_version or DEFAULT_AZURE_API_VERSION
        return self._config.api_version

    def _request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._request_model(),
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "top_p": 1,
            # litellm sends its own per-request timeout otherwise.
            "timeout": self._config.timeout,
            "api_key": self._config.token,
            "client": self._sdk,
        }
        if self._config.base_url:
            kwargs["api_base"] = self._config.base_url
        api_version = self._api_version()
        if api_version:
            kwargs["api_version"] = api_version
        return kwargs


def new(*opts: Option) -> Client:
    """Build a Client from options.

    Raises ConfigError when validation fails and ProxyError when the SOCKS5
    transport cannot be set up. No client is returned on either path.
    """
    return Client(new_config(*opts))


def _build_sdk(config: Config) -> OpenAI | AzureOpenAI:
    http_client = build_http_client(config)
    if config.provider is Provider.AZURE:
        return AzureOpenAI(
            api_key=config.token,
            azure_endpoint=config.base_url,
            azure_deployment=config.model_name,
            api_version=config.api_version or DEFAULT_AZURE_API_VERSION,
            timeout=config.timeout,
            max_retries=0,
            http_client=http_client,
        )
    return OpenAI(
        api_key=config.token,
        organization=config.org_id or None,
        base_url=config.base_url or None,
        timeout=config.timeout,
        max_retries=0,
        http_client=http_client,
    )


def _function_payload(function: FunctionDefinition | dict) -> dict:
    if isinstance(function, FunctionDefinition):
        return function.model_dump()
    return dict(function)


def _first_choice(resp: Any) -> Any:
    choices = getattr(resp, "choices", None)
    if not choices:
        raise EmptyResponseError("empty response from provider")
    return choices[0]


def _usage(resp: Any) -> Usage:
    usage = getattr(resp, "usage", None)
    if usage is None:
        return Usage()
    return Usage(
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
        total_tokens=getattr(usage, "total_tokens", 0) or 0,
    )
